from .user import User
from .case import Case, CaseParty, CaseAssignment, CaseDocument
from .document import Document
from .ocr_job import OcrJob
from .document_text import DocumentText

__all__ = [
    "User", "Case", "CaseParty", "CaseAssignment", "CaseDocument",
    "Document", "OcrJob", "DocumentText",
]
