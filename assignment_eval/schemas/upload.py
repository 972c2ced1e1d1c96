# assignment_eval/schemas/upload.py
from pydantic import BaseModel


class StoredFile(BaseModel):
    filename: str
    original_name: str
    mime_type: str
    size: int
    url: str
