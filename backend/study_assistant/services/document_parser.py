from pathlib import Path
import tempfile
import os

from study_assistant.core.errors import DocumentParseError


class DocumentParser:
    """Parse documents - plain text directly, complex formats via unstructured."""

    # Plain text extensions (read directly)
    TEXT_EXTENSIONS = {
        ".txt", ".md", ".markdown", ".csv", ".tsv", ".json",
        ".xml", ".html", ".js", ".ts", ".py", ".log",
    }

    # Extensions that need unstructured library
    COMPLEX_EXTENSIONS = {".pdf", ".docx", ".pptx"}

    # All supported extensions
    SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | COMPLEX_EXTENSIONS

    @staticmethod
    def file_type(filename: str) -> str:
        """Infer the stored file kind from the extension."""
        return Path(filename).suffix.lower().lstrip(".") or "unknown"

    def parse(self, content: bytes, filename: str) -> str:
        """Parse document bytes into text."""
        ext = Path(filename).suffix.lower()

        if ext not in self.SUPPORTED_EXTENSIONS:
            raise DocumentParseError(f"Unsupported file type: {ext or filename}")

        # Handle plain text files directly
        if ext in self.TEXT_EXTENSIONS:
            try:
                return content.decode("utf-8")
            except UnicodeDecodeError:
                # Try other encodings
                for encoding in ["cp1252", "latin-1"]:
                    try:
                        return content.decode(encoding)
                    except UnicodeDecodeError:
                        continue
                raise DocumentParseError(f"Could not decode {filename} as text")

        # Handle complex formats with unstructured
        from unstructured.partition.auto import partition

        # Write to temp file for unstructured to process
        with tempfile.NamedTemporaryFile(suffix=ext, delete=False) as tmp:
            tmp.write(content)
            tmp_path = tmp.name

        try:
            elements = partition(filename=tmp_path)
            text = "\n\n".join(str(el) for el in elements)
        except Exception as e:
            raise DocumentParseError(f"Failed to parse {filename}: {str(e)}")
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

        if not text.strip():
            raise DocumentParseError(
                f"No text extracted from {filename}. The file may be scanned, empty or encrypted."
            )
        return text
