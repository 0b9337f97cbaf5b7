"""PyMuPDF text extraction with Tesseract OCR for scanned PDFs and images."""

import io
import os
from typing import Callable, Optional

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

from post_analyzer.config import OCRConfig
from post_analyzer.detector import SNIFF_LENGTH, DocumentDetector
from post_analyzer.exceptions import ExtractionError
from post_analyzer.logger import Timer, get_logger
from post_analyzer.models import ExtractionMode, ExtractionRequest, ExtractionResult

logger = get_logger(__name__)


class TextExtractor:
    """Extracts text from a staged upload.

    One strategy per ``ExtractionMode``:

    - ``DIRECT_PDF``: the PDF's own text layer, page by page.
    - ``SCANNED_PDF``: each page rasterized and run through Tesseract, one
      page at a time so only a single bitmap is alive at once.
    - ``IMAGE``: Tesseract on the uploaded image as is.
    """

    def __init__(self, config: Optional[OCRConfig] = None, detector: Optional[DocumentDetector] = None):
        """Initialize extractor with configuration.

        Args:
            config: OCR configuration. If None, uses defaults.
            detector: Media type detector. If None, creates default.
        """
        self.config = config or OCRConfig()
        self.detector = detector or DocumentDetector()

        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd
        if self.config.tessdata_prefix:
            os.environ["TESSDATA_PREFIX"] = self.config.tessdata_prefix

        self._strategies: dict[ExtractionMode, Callable[[bytes, str], tuple[str, Optional[int]]]] = {
            ExtractionMode.DIRECT_PDF: self._extract_direct_pdf,
            ExtractionMode.SCANNED_PDF: self._extract_scanned_pdf,
            ExtractionMode.IMAGE: self._extract_image,
        }

        logger.info(
            "Initializing TextExtractor",
            extra_data={
                "tesseract_cmd": self.config.tesseract_cmd,
                "languages": self.config.languages,
                "render_scale": self.config.render_scale,
            },
        )

    def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """Extract text from the staged file of ``request``.

        Args:
            request: Staged file plus the extraction mode to use

        Returns:
            ExtractionResult; its text may be empty

        Raises:
            ExtractionError: If the file cannot be read, parsed or OCR'd
        """
        staged = request.file
        file_name = staged.original_name
        strategy = self._strategies[request.mode]

        logger.debug(
            "Starting text extraction",
            extra_data={
                "file_name": file_name,
                "mode": request.mode.value,
                "file_size_bytes": staged.size_bytes,
            },
        )

        try:
            with Timer("extraction") as timer:
                file_bytes = staged.read_bytes()
                mime_type = self.detector.detect(
                    file_bytes[:SNIFF_LENGTH], file_name, staged.content_type, mode=request.mode
                )
                text, page_count = strategy(file_bytes, file_name)
        except Exception as exc:
            logger.error(
                "Text extraction failed",
                extra_data={
                    "file_name": file_name,
                    "mode": request.mode.value,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
                exc_info=True,
            )
            raise ExtractionError(f"Failed to extract text from {file_name}: {exc}") from exc

        logger.info(
            "Text extraction complete",
            extra_data={
                "file_name": file_name,
                "mode": request.mode.value,
                "page_count": page_count,
                "characters_extracted": len(text),
                "extraction_time_ms": timer.get_elapsed_ms(),
            },
        )

        return ExtractionResult(
            text=text,
            mode=request.mode,
            file_name=file_name,
            mime_type=mime_type,
            page_count=page_count,
        )

    def _extract_direct_pdf(self, file_bytes: bytes, file_name: str) -> tuple[str, int]:
        """Concatenate the embedded text of every page in document order."""
        with fitz.open(stream=file_bytes, filetype="pdf") as document:
            page_count = document.page_count
            text = "".join(page.get_text() for page in document)

        logger.debug(
            "PDF native text extraction completed",
            extra_data={
                "file_name": file_name,
                "page_count": page_count,
                "characters_extracted": len(text),
            },
        )
        return text, page_count

    def _extract_scanned_pdf(self, file_bytes: bytes, file_name: str) -> tuple[str, int]:
        """OCR a PDF page by page.

        A failure on any page aborts the whole document.
        """
        matrix = fitz.Matrix(self.config.render_scale, self.config.render_scale)
        parts: list[str] = []

        with fitz.open(stream=file_bytes, filetype="pdf") as document:
            page_count = document.page_count

            for page_number in range(1, page_count + 1):
                with Timer("page_ocr") as timer:
                    page = document.load_page(page_number - 1)
                    pixmap = page.get_pixmap(matrix=matrix, alpha=False)
                    image = Image.frombytes("RGB", (pixmap.width, pixmap.height), pixmap.samples)
                    try:
                        page_text = self._ocr(image)
                    finally:
                        image.close()
                        del pixmap, page

                parts.append(page_text + "\n")

                logger.info(
                    f"OCR completed for page {page_number}",
                    extra_data={
                        "file_name": file_name,
                        "page_number": page_number,
                        "page_count": page_count,
                        "characters_extracted": len(page_text.strip()),
                        "ocr_time_ms": timer.get_elapsed_ms(),
                    },
                )

        return "".join(parts), page_count

    def _extract_image(self, file_bytes: bytes, file_name: str) -> tuple[str, None]:
        """OCR an image directly, no rasterization step."""
        with Image.open(io.BytesIO(file_bytes)) as image:
            logger.debug(
                "Starting OCR on image",
                extra_data={
                    "file_name": file_name,
                    "image_format": image.format,
                    "image_width": image.size[0],
                    "image_height": image.size[1],
                },
            )
            text = self._ocr(image)

        return text, None

    def _ocr(self, image: Image.Image) -> str:
        return pytesseract.image_to_string(
            image,
            lang=self.config.languages,
            config=f"--psm {self.config.psm_mode}",
        )
