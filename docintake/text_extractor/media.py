"""
Document and media type definitions.

A Document is the immutable unit of work handed to the pipeline: raw bytes,
the declared media type and an optional filename used only as a hint for
the document class.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from docintake.utils.exceptions import DocumentClassError, UnsupportedMediaTypeError
from docintake.utils.helpers import format_file_size


class MediaType(str, Enum):
    PDF = "pdf"
    JPEG = "jpeg"
    PNG = "png"

    @classmethod
    def parse(cls, value: Union[str, 'MediaType']) -> 'MediaType':
        """
        Resolve a short name, file extension or MIME string to a MediaType.

        Example:
            >>> MediaType.parse("image/jpeg")
            <MediaType.JPEG: 'jpeg'>
            >>> MediaType.parse(".JPG")
            <MediaType.JPEG: 'jpeg'>

        Raises:
            UnsupportedMediaTypeError: For anything that is not pdf/jpeg/png.
        """
        if isinstance(value, MediaType):
            return value

        key = str(value or "").strip().lower().lstrip(".")
        resolved = _MEDIA_ALIASES.get(key)
        if resolved is None:
            raise UnsupportedMediaTypeError(str(value), [m.value for m in cls])
        return resolved


_MEDIA_ALIASES = {
    "pdf": MediaType.PDF,
    "application/pdf": MediaType.PDF,
    "jpeg": MediaType.JPEG,
    "jpg": MediaType.JPEG,
    "image/jpeg": MediaType.JPEG,
    "image/jpg": MediaType.JPEG,
    "png": MediaType.PNG,
    "image/png": MediaType.PNG,
}


class DocumentClass(str, Enum):
    INVOICE = "invoice"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value: Union[str, 'DocumentClass']) -> 'DocumentClass':
        if isinstance(value, DocumentClass):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise DocumentClassError(str(value)) from None


# Filename fragments hinting at the document class, checked in this order
INVOICE_HINTS = ('faktura', 'invoice', 'fv')
EXPENSE_HINTS = ('paragon', 'rachunek', 'koszt', 'expense')


def infer_document_class(filename: Optional[str]) -> Optional[DocumentClass]:
    """
    Guess the document class from a filename.

    Example:
        >>> infer_document_class("FV_2024_001.pdf")
        <DocumentClass.INVOICE: 'invoice'>
        >>> infer_document_class("paragon-orlen.jpg")
        <DocumentClass.EXPENSE: 'expense'>
        >>> infer_document_class("scan001.png") is None
        True
    """
    if not filename:
        return None

    name = filename.lower()
    if any(hint in name for hint in INVOICE_HINTS):
        return DocumentClass.INVOICE
    if any(hint in name for hint in EXPENSE_HINTS):
        return DocumentClass.EXPENSE
    return None


@dataclass(frozen=True)
class Document:
    """
    Raw document submitted for ingestion.

    Attributes:
        data: The file contents
        media_type: Declared media type
        document_class: Which field set to extract
        filename: Optional original filename, informational only
    """
    data: bytes
    media_type: MediaType
    document_class: DocumentClass = DocumentClass.INVOICE
    filename: Optional[str] = None

    @classmethod
    def create(
        cls,
        data: bytes,
        media_type: Union[str, MediaType],
        document_class: Optional[Union[str, DocumentClass]] = None,
        filename: Optional[str] = None,
        default_class: Union[str, DocumentClass] = DocumentClass.INVOICE
    ) -> 'Document':
        """
        Build a Document, validating the media type and resolving the class.

        An explicit document class wins; otherwise the filename hint is used;
        otherwise default_class.

        Raises:
            UnsupportedMediaTypeError: If the media type is not supported.
            DocumentClassError: If document_class is not invoice/expense.
        """
        media = MediaType.parse(media_type)

        if document_class is not None:
            doc_class = DocumentClass.parse(document_class)
        else:
            doc_class = infer_document_class(filename) or DocumentClass.parse(default_class)

        return cls(data=data, media_type=media, document_class=doc_class, filename=filename)

    @property
    def description(self) -> str:
        """Human-readable origin used as the result's source description."""
        name = self.filename or "upload"
        return f"{name} ({self.media_type.value}, {format_file_size(len(self.data))})"

    def __repr__(self) -> str:
        return (
            f"Document(filename={self.filename!r}, media_type={self.media_type.value}, "
            f"class={self.document_class.value}, size={len(self.data)})"
        )
