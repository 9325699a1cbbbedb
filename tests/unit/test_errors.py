from __future__ import annotations

import pickle

from dessem_ingest.domain.diagnostics import DiagnosticCode, Severity
from dessem_ingest.errors import CoercionError, NoParserRegistered, StrideMismatch, UnterminatedBlock


def test_structural_errors_survive_pickling() -> None:
    error = StrideMismatch("partial record", length=800, stride=792, file_id="hidr.dat")

    restored = pickle.loads(pickle.dumps(error))

    assert type(restored) is StrideMismatch
    assert str(restored) == "partial record"
    assert (restored.length, restored.stride, restored.offset) == (800, 792, 792)
    assert restored.file_id == "hidr.dat"


def test_coercion_error_survives_pickling() -> None:
    error = CoercionError("bad", field="plant", raw="1a", expected="integer", columns=(5, 7))

    restored = pickle.loads(pickle.dumps(error))

    assert (restored.field, restored.raw, restored.columns) == ("plant", "1a", (5, 7))
    assert isinstance(restored, ValueError)


def test_error_codes_and_severities() -> None:
    unterminated = UnterminatedBlock("open", file_id="operut.dat", line=3).to_diagnostic()
    assert (unterminated.code, unterminated.severity) == (
        DiagnosticCode.UNTERMINATED_BLOCK,
        Severity.ERROR,
    )
    assert unterminated.location() == "operut.dat:3"

    missing = NoParserRegistered("none", file_id="x.arq")
    assert isinstance(missing, LookupError)
    assert missing.to_diagnostic().code is DiagnosticCode.NO_PARSER_REGISTERED

    coercion = CoercionError("bad", field="a", raw="x", expected="integer")
    assert coercion.to_diagnostic("f.dat").severity is Severity.WARNING


def test_structural_errors_describe_what_was_expected() -> None:
    stride = StrideMismatch("partial record", length=800, stride=792, file_id="hidr.dat")
    assert stride.to_diagnostic().expected == "length multiple of 792 bytes"
    assert pickle.loads(pickle.dumps(stride)).expected == "length multiple of 792 bytes"

    unterminated = UnterminatedBlock("open", file_id="operut.dat", line=3)
    assert unterminated.to_diagnostic().expected == (
        "block closed by its terminator before end of input"
    )
    custom = UnterminatedBlock("open", expected="terminator FIM before end of input")
    assert custom.to_diagnostic().expected == "terminator FIM before end of input"

    missing = NoParserRegistered("none", file_id="x.arq").to_diagnostic()
    assert missing.expected == "file name matching a registered format"
