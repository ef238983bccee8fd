import asyncio
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from dropserve.errors import AlreadyExistsError, InvalidPathError  # noqa: E402
from dropserve.models import QueryParameters, UploadRequest  # noqa: E402
from dropserve.upload import build_response, process_upload  # noqa: E402
from multipart_helpers import (  # noqa: E402
    chunks,
    content_type,
    file_part,
    multipart_body,
    split,
)


def _request(root, body, path="/", **kwargs):
    return UploadRequest(
        return_path=kwargs.pop("return_path", "/list/"),
        query=QueryParameters(path=path),
        content_type=content_type(),
        body=chunks(*split(body, 16)),
        root_dir=root,
        **kwargs,
    )


def test_outcome_reports_written_files(tmp_path):
    body = multipart_body([file_part("a.txt", b"12345"), file_part("b.txt", b"")])
    outcome = asyncio.run(process_upload(_request(tmp_path, body)))
    assert outcome.ok
    assert outcome.redirect_to == "/list/"
    assert [(w.path.name, w.size) for w in outcome.written] == [
        ("a.txt", 5),
        ("b.txt", 0),
    ]


def test_first_failure_stops_processing(tmp_path):
    (tmp_path / "b.txt").write_bytes(b"keep")
    body = multipart_body(
        [
            file_part("a.txt", b"a"),
            file_part("b.txt", b"b"),
            file_part("c.txt", b"c"),
        ]
    )
    outcome = asyncio.run(process_upload(_request(tmp_path, body)))
    assert not outcome.ok
    assert isinstance(outcome.error, AlreadyExistsError)
    assert outcome.redirect_to is None
    assert [w.path.name for w in outcome.written] == ["a.txt"]
    assert (tmp_path / "b.txt").read_bytes() == b"keep"
    assert not (tmp_path / "c.txt").exists()


def test_invalid_path_writes_nothing(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    body = multipart_body([file_part("a.txt", b"a")])
    outcome = asyncio.run(process_upload(_request(root, body, path="../")))
    assert isinstance(outcome.error, InvalidPathError)
    assert list(tmp_path.rglob("a.txt")) == []


def test_build_response_uses_compat_status(tmp_path):
    body = multipart_body([file_part("a.txt", b"a")])
    request = _request(tmp_path, body, path=None)
    outcome = asyncio.run(process_upload(request))
    assert build_response(request, outcome).status_code == 400
    assert build_response(request, outcome, strict_status_codes=True).status_code == 400

    (tmp_path / "a.txt").write_bytes(b"a")
    request = _request(tmp_path, body)
    outcome = asyncio.run(process_upload(request))
    assert build_response(request, outcome).status_code == 400
    assert build_response(request, outcome, strict_status_codes=True).status_code == 409
