# File: tests/test_cli.py
"""Tests for the CLI (`doc_scout/cli.py`) using click.testing.CliRunner.

The page-loading part of ``scan`` is replaced by a fake that builds the page
from static HTML; everything after it (policy, channels, reports) is real.
"""
import asyncio
import importlib
import json
from pathlib import Path

import pytest
from click.testing import CliRunner
from doc_scout.actions import ClipboardUnavailable
from doc_scout.aggregator import aggregate_results
from doc_scout.cli import cli
from doc_scout.engine import DocScout
from doc_scout.page.session import PageLoadError
from doc_scout.policy import SiteActivationPolicy

# the package re-exports the click group under the same name as the module
cli_module = importlib.import_module("doc_scout.cli")

COURSE_URL = "https://school.example.edu/course/42/"
COURSE_HTML = (
    '<html><body><a href="notes/lecture01.pptx">L1</a>'
    "<pre>https://cdn.example.com/handout.pdf</pre></body></html>"
)
LECTURE = "https://school.example.edu/course/42/notes/lecture01.pptx"
HANDOUT = "https://cdn.example.com/handout.pdf"


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """No configs/default.yaml in the working directory."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def state_file(tmp_path) -> Path:
    return tmp_path / "state.json"


@pytest.fixture()
def invoke(state_file):
    runner = CliRunner()

    def _invoke(*args, **kwargs):
        return runner.invoke(cli, ["--state-file", str(state_file), *args], **kwargs)

    return _invoke


@pytest.fixture(autouse=True)
def fake_scan(monkeypatch, make_page):
    """Replace start_scan with a network-free version; returns recorded calls."""
    calls = []

    async def _fake(cfg, url, storage, *, extra_requests=(), notify, clipboard):
        calls.append({"url": url, "extra_requests": tuple(extra_requests)})
        page = make_page(COURSE_HTML, url)
        scout = DocScout(
            page, SiteActivationPolicy(storage, page.host), cfg, notify=notify, clipboard=clipboard
        )
        scout.scan_once()
        report = aggregate_results(
            page.url,
            page.host,
            scout.store.all(),
            enabled=bool(scout.enabled),
            deep_mode=scout.deep_mode.active,
        )
        return report, scout

    monkeypatch.setattr(cli_module, "start_scan", _fake)
    return calls


def test_version_option(invoke):
    result = invoke("--version")
    assert result.exit_code == 0
    assert "DocScout, version 0.1.0" in result.output


def test_show_config(tmp_path, invoke):
    cfg_file = tmp_path / "custom.yaml"
    cfg_file.write_text("timeout: 4\nrequest_endpoints: [/api/materials]\n", encoding="utf-8")

    result = invoke("--config", str(cfg_file), "config")
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["timeout"] == 4.0
    assert data["request_endpoints"] == ["/api/materials"]


def test_invalid_config_is_reported(tmp_path, invoke):
    cfg_file = tmp_path / "broken.yaml"
    cfg_file.write_text("timeout: -1\n", encoding="utf-8")

    result = invoke("--config", str(cfg_file), "config")
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


# --------------------------------------------------------------------------- #
#                                     scan                                    #
# --------------------------------------------------------------------------- #


def test_scan_stdout(invoke, fake_scan):
    result = invoke("scan", COURSE_URL, "-r", "/api/a", "-r", "/api/b")
    assert result.exit_code == 0, result.output

    output = json.loads(result.output)
    assert [d["url"] for d in output["documents"]] == [LECTURE, HANDOUT]
    assert output["by_source"] == {"dom": 1, "inline": 1}
    assert fake_scan == [{"url": COURSE_URL, "extra_requests": ("/api/a", "/api/b")}]


def test_scan_list(invoke):
    result = invoke("scan", COURSE_URL, "--list")
    assert result.exit_code == 0
    assert result.output.splitlines() == [
        f"1. lecture01.pptx  {LECTURE}",
        f"2. handout.pdf  {HANDOUT}",
    ]


def test_scan_json_and_html_files(tmp_path, invoke):
    json_out = tmp_path / "out" / "report.json"
    html_out = tmp_path / "out" / "report.html"

    result = invoke("scan", COURSE_URL, "--json", str(json_out), "--html", str(html_out), "--pretty")
    assert result.exit_code == 0
    assert f"JSON report: {json_out}" in result.output
    assert f"HTML report: {html_out}" in result.output

    data = json.loads(json_out.read_text(encoding="utf-8"))
    assert data["host"] == "school.example.edu"
    assert "lecture01.pptx" in html_out.read_text(encoding="utf-8")


def test_scan_copy(invoke, monkeypatch):
    copied = []
    monkeypatch.setattr(cli_module, "system_clipboard", copied.append)

    result = invoke("scan", COURSE_URL, "--list", "--copy")
    assert result.exit_code == 0
    assert copied == [f"{LECTURE}\n{HANDOUT}"]
    assert "Copied all links" in result.output


def test_scan_copy_without_clipboard(invoke, monkeypatch):
    def no_clipboard(text):
        raise ClipboardUnavailable("no display")

    monkeypatch.setattr(cli_module, "system_clipboard", no_clipboard)

    result = invoke("scan", COURSE_URL, "--list", "--copy")
    assert result.exit_code == 0
    assert "Clipboard unavailable (no display)" in result.output
    assert f"{LECTURE}\n{HANDOUT}" in result.output


def test_scan_on_disabled_host(invoke):
    assert invoke("enable-host", "elsewhere.edu").exit_code == 0

    result = invoke("scan", COURSE_URL, "--copy")
    assert result.exit_code == 0
    assert "DocScout is not enabled for school.example.edu." in result.output
    assert (
        "Available actions: status, whitelist, clear-whitelist, enable-host, enable-all, toggle-deep"
        in result.output
    )
    assert "Copied" not in result.output


def test_scan_with_deep_mode_preference(invoke):
    assert invoke("toggle-deep", "school.example.edu").output.strip() == "Deep mode on"

    result = invoke("scan", COURSE_URL, "--list")
    assert result.exit_code == 0
    assert "Deep mode enabled, reload the page to catch early requests" in result.output


def test_scan_timeout(invoke, monkeypatch):
    async def slow(cfg, url, storage, **kwargs):
        await asyncio.sleep(2)

    monkeypatch.setattr(cli_module, "start_scan", slow)

    result = invoke("scan", COURSE_URL, "--scan-timeout", "0.1")
    assert result.exit_code != 0
    assert "did not finish" in result.output


def test_scan_failure(invoke, monkeypatch):
    async def broken(cfg, url, storage, **kwargs):
        raise PageLoadError(f"{url} answered HTTP 404")

    monkeypatch.setattr(cli_module, "start_scan", broken)

    result = invoke("scan", COURSE_URL)
    assert result.exit_code == 1
    assert "Scan failed" in result.output
    assert "HTTP 404" in result.output


# --------------------------------------------------------------------------- #
#                              Activation commands                            #
# --------------------------------------------------------------------------- #


def test_whitelist_round_trip(invoke, state_file):
    assert invoke("mode", "a.edu").output.strip() == "Mode: all sites, deep mode: off"
    assert invoke("whitelist").output.strip() == "Whitelist is empty"

    assert invoke("enable-host", "https://A.edu/course").output.strip() == "Enabled only on a.edu"
    assert invoke("enable-host", "b.edu").exit_code == 0
    assert json.loads(state_file.read_text(encoding="utf-8"))["whitelist"] == ["a.edu", "b.edu"]
    assert invoke("whitelist").output == "Whitelist (2)\n\na.edu\nb.edu\n"
    assert invoke("mode", "c.edu").output.strip() == (
        "Mode: whitelist only (current site not enabled), deep mode: off"
    )

    assert invoke("disable-host", "a.edu").output.strip() == "Removed a.edu"
    assert invoke("disable-host", "b.edu").output.strip() == "Removed b.edu"
    assert invoke("mode", "a.edu").output.strip() == "Mode: all sites, deep mode: off"


def test_enable_all_keeps_whitelist(invoke):
    invoke("enable-host", "a.edu")
    assert invoke("enable-all").output.strip() == "Enabled on all sites"
    assert invoke("whitelist").output == "Whitelist (1)\n\na.edu\n"
    assert invoke("mode", "z.edu").output.strip() == "Mode: all sites, deep mode: off"


def test_clear_whitelist_asks_first(invoke):
    invoke("enable-host", "a.edu")

    declined = invoke("clear-whitelist", input="n\n")
    assert declined.exit_code == 1
    assert invoke("whitelist").output.strip() == "Whitelist (1)\n\na.edu"

    confirmed = invoke("clear-whitelist", "--yes")
    assert confirmed.exit_code == 0
    assert "Whitelist cleared, enabled on all sites" in confirmed.output
    assert invoke("whitelist").output.strip() == "Whitelist is empty"


@pytest.mark.parametrize(
    "args",
    [
        ("mode", "a.edu"),
        ("whitelist",),
        ("clear-whitelist", "--yes"),
        ("enable-host", "a.edu"),
        ("disable-host", "a.edu"),
        ("enable-all",),
        ("toggle-deep", "a.edu"),
        ("menu", "a.edu"),
    ],
)
def test_corrupt_state_file_is_reported(invoke, state_file, args):
    state_file.write_text("{broken", encoding="utf-8")

    result = invoke(*args)
    assert result.exit_code == 1
    assert "Failed to read state file" in result.output
    assert "Invalid JSON" in result.output
    assert not isinstance(result.exception, ValueError)


def test_toggle_deep_on_disabled_host(invoke):
    invoke("enable-host", "a.edu")
    assert invoke("toggle-deep", "b.edu").output.strip() == "Deep mode on (not enabled for b.edu)"
    assert invoke("toggle-deep", "a.edu").output.strip() == "Deep mode off"


def test_menu(invoke):
    full = invoke("menu", "a.edu").output.splitlines()
    assert [line.split()[0] for line in full] == [
        "copy",
        "status",
        "whitelist",
        "clear-whitelist",
        "enable-host",
        "disable-host",
        "enable-all",
        "toggle-deep",
    ]
    assert full[0] == "copy             Copy all document links"

    invoke("enable-host", "b.edu")
    reduced = [line.split()[0] for line in invoke("menu", "a.edu").output.splitlines()]
    assert "copy" not in reduced
    assert "disable-host" not in reduced


# --------------------------------------------------------------------------- #
#                                   download                                  #
# --------------------------------------------------------------------------- #


def test_download(tmp_path, invoke, monkeypatch):
    calls = []

    async def fake_download(url, session, dest_dir):
        calls.append((url, dest_dir))
        if "missing" in url:
            return None
        return Path(dest_dir) / url.rsplit("/", 1)[-1]

    monkeypatch.setattr(cli_module, "download_url", fake_download)

    result = invoke("download", "https://a.edu/x.pdf", "https://a.edu/missing.pdf", "--dest", str(tmp_path))
    assert result.exit_code == 0
    assert f"Saved: {tmp_path / 'x.pdf'}" in result.output
    assert "Opened in browser: https://a.edu/missing.pdf" in result.output
    assert [c[0] for c in calls] == ["https://a.edu/x.pdf", "https://a.edu/missing.pdf"]
