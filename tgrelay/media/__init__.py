"""Attachment download and annotation."""

from tgrelay.media.materializer import AttachmentMaterializer, annotate

__all__ = ["AttachmentMaterializer", "annotate"]
