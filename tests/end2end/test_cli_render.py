from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pdfraster import cli
from pdfraster.pdf_render import fingerprint
from pdfraster.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


def test_render_dry_run_prints_object_keys(
    mocker,
    capsys,
    tmp_path: Path,
    make_pdf: Callable[..., bytes],
) -> None:
    data = make_pdf(pages=4)
    pdf = tmp_path / "doc.pdf"
    pdf.write_bytes(data)
    digest = fingerprint(data)
    mocker.patch("pdfraster.cli.get_settings", return_value=Settings())

    result = cli.main(["render", "--input", str(pdf), "--dry-run", "--pages", "2,4", "--format", "webp"])

    assert result == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"success": True, "images": [f"{digest}-1.webp", f"{digest}-3.webp"]}


def test_render_without_storage_settings_fails(
    mocker,
    tmp_path: Path,
    make_pdf: Callable[..., bytes],
) -> None:
    pdf = tmp_path / "doc.pdf"
    pdf.write_bytes(make_pdf(pages=1))
    settings = Settings(account_id=None, endpoint_url=None, key_id=None, access_key_secret=None, bucket=None)
    mocker.patch("pdfraster.cli.get_settings", return_value=settings)
    run_async_spy = mocker.spy(cli, "run_async")

    result = cli.main(["render", "--input", str(pdf)])

    assert result == 1
    run_async_spy.assert_not_called()


def test_render_uploads_through_s3_client(
    mocker,
    capsys,
    tmp_path: Path,
    make_pdf: Callable[..., bytes],
) -> None:
    data = make_pdf(pages=2)
    pdf = tmp_path / "doc.pdf"
    pdf.write_bytes(data)
    digest = fingerprint(data)
    settings = Settings(account_id="acct", key_id="key", access_key_secret="secret", bucket="pages")
    mocker.patch("pdfraster.cli.get_settings", return_value=settings)
    client = mocker.Mock()
    mocker.patch("pdfraster.storage.build_s3_client", return_value=client)

    result = cli.main(["render", "--input", str(pdf), "--format", "png"])

    assert result == 0
    assert json.loads(capsys.readouterr().out)["images"] == [f"{digest}-0.png", f"{digest}-1.png"]
    uploaded = sorted(call.kwargs["Key"] for call in client.put_object.call_args_list)
    assert uploaded == [f"{digest}-0.png", f"{digest}-1.png"]
    for call in client.put_object.call_args_list:
        assert call.kwargs["Bucket"] == "pages"
        assert call.kwargs["ContentType"] == "image/png"
