"""Services layer for document generation."""

from autoapply.services.document_generator import DocumentGenerator, DocumentMetadata, PdfResumeRenderer

__all__ = ["DocumentGenerator", "DocumentMetadata", "PdfResumeRenderer"]
