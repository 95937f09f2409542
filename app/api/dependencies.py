"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

REVENUE_FILE_EXTENSIONS = (".csv", ".xlsx", ".xls")

REVENUE_CONTENT_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def get_revenue_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV file or an Excel workbook by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").strip().lower()

    is_revenue_filename = filename.endswith(REVENUE_FILE_EXTENSIONS)
    is_revenue_content_type = content_type in REVENUE_CONTENT_TYPES

    if not is_revenue_filename and not is_revenue_content_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV, XLSX or XLS files are allowed.",
        )

    return file
