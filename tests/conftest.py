"""Shared fixtures for the test suite."""

import pytest

from builders import build_docx


@pytest.fixture
def make_docx(tmp_path):
    """Factory writing packages into the test's temporary directory.

    Example:
        >>> host = make_docx("host.docx", body=text_paragraph("Hi"))
    """

    def make(name: str = "test.docx", **kwargs):
        return build_docx(tmp_path / name, **kwargs)

    return make
