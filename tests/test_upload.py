import io

from pypdf import PdfWriter

from doclens.ingest.upload import from_uploaded, inspect_upload
from doclens.utils.types import UploadFile


def pdf_bytes(pages=2):
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=595, height=842)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


class FakeUploaded:
    name = "contract.pdf"
    type = "application/pdf"

    def __init__(self, data):
        self._data = data

    def getvalue(self):
        return self._data


def test_valid_pdf_counts_pages():
    check = inspect_upload(UploadFile("contract.pdf", pdf_bytes(3)))
    assert check.ok
    assert check.pages == 3


def test_non_pdf_rejected():
    check = inspect_upload(UploadFile("notes.txt", b"just some text"))
    assert not check.ok
    assert "PDF" in check.error


def test_empty_and_damaged_rejected():
    assert not inspect_upload(UploadFile("empty.pdf", b"")).ok
    damaged = inspect_upload(UploadFile("bad.pdf", b"%PDF-1.4\nnot really a pdf"))
    assert not damaged.ok


def test_from_uploaded_wraps_streamlit_file():
    data = pdf_bytes(1)
    file = from_uploaded(FakeUploaded(data))
    assert file.name == "contract.pdf"
    assert file.size == len(data)
