"""Tests for session domain types."""

import pytest

from verification_relay.domain.sessions import DocumentType


@pytest.mark.parametrize(
    ("code", "expected", "label"),
    [
        ("ci", DocumentType.CI, "Cédula de Ciudadanía"),
        ("CE", DocumentType.CE, "Cédula de Extranjería"),
        (" pp ", DocumentType.PP, "Pasaporte"),
        ("nit", DocumentType.OTHER, "Documento"),
        (None, DocumentType.OTHER, "Documento"),
    ],
)
def test_document_type_parse_and_label(
    code: str | None, expected: DocumentType, label: str
) -> None:
    document_type = DocumentType.parse(code)

    assert document_type is expected
    assert document_type.label == label
