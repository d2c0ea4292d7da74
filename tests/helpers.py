"""Test doubles shared across test modules."""

from statements.extraction import TransactionExtractor
from statements.models import Upload


class FakeExtractor(TransactionExtractor):
    """Returns canned results per file name; an exception instance is raised instead."""

    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []

    async def extract(self, upload, context):
        self.calls.append((upload.name, context))
        result = self.results.get(upload.name, [])
        if isinstance(result, Exception):
            raise result
        return result


def make_upload(name="releve.pdf", mime_type="application/pdf", data=b"%PDF-1.4"):
    return Upload(name=name, mime_type=mime_type, data=data)
