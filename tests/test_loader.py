"""Content loader: classification, per-format loading and delimiter splitting."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from promptsrc.config import ResolutionConfig
from promptsrc.errors import (
    ConfigurationError,
    MissingFileError,
    NoPromptsFoundError,
)
from promptsrc.loader import (
    SourceKind,
    classify_source,
    load_prompt_contents,
    split_function_name,
    split_prompt_text,
)
from promptsrc.modules import ModuleFunction
from promptsrc.types import (
    DynamicPrompt,
    InputKind,
    ResolutionContext,
    ResolvedPathInfo,
    StaticPrompt,
)

pytestmark = pytest.mark.unit

STRING_CTX = ResolutionContext(input_kind=InputKind.STRING)


def _info(path: Path | str, raw: str | None = None) -> ResolvedPathInfo:
    return ResolvedPathInfo(raw=raw if raw is not None else str(path), resolved=str(path))


# --- Classification ---


@pytest.mark.parametrize(
    ("ext", "expected"),
    [
        (".js", SourceKind.SCRIPT_FUNCTION),
        (".cjs", SourceKind.SCRIPT_FUNCTION),
        (".mjs", SourceKind.SCRIPT_FUNCTION),
        (".py", SourceKind.INTERPRETED_SCRIPT),
        (".jsonl", SourceKind.LINE_RECORDS),
        (".txt", SourceKind.PLAIN_TEXT),
        (".md", SourceKind.UNSUPPORTED),
        ("", SourceKind.UNSUPPORTED),
    ],
)
def test_classify_existing_files_by_extension(ext: str, expected: SourceKind) -> None:
    assert classify_source(ext, exists=True, is_dir=False) is expected


def test_classify_missing_and_directories_ignore_extension() -> None:
    assert classify_source(".txt", exists=False, is_dir=False) is SourceKind.RAW_FALLBACK
    assert classify_source(".py", exists=True, is_dir=True) is SourceKind.DIRECTORY


@pytest.mark.parametrize(
    ("resolved", "expected"),
    [
        ("/p/prompts.py:prompt1", ("/p/prompts.py", "prompt1")),
        ("/p/prompts.mjs:default", ("/p/prompts.mjs", "default")),
        ("/p/notes:v2.txt", ("/p/notes:v2.txt", None)),
        ("/p/prompts.py", ("/p/prompts.py", None)),
        ("/p/prompts.py:", ("/p/prompts.py", None)),
    ],
)
def test_split_function_name_only_after_script_extensions(
    resolved: str, expected: tuple[str, str | None]
) -> None:
    assert split_function_name(resolved) == expected


# --- Raw fallback ---


def test_missing_path_becomes_literal_prompt_from_raw(tmp_path: Path) -> None:
    info = ResolvedPathInfo(raw="rawPrompt", resolved=str(tmp_path / "rawPrompt"))

    result = load_prompt_contents(info, STRING_CTX)

    assert result == [StaticPrompt(raw="rawPrompt", label="rawPrompt")]


def test_missing_path_that_looks_like_a_file_logs_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.WARNING, logger="promptsrc")
    info = ResolvedPathInfo(
        raw="raw/path/to/file.txt", resolved=str(tmp_path / "raw/path/to/file.txt")
    )

    result = load_prompt_contents(info, STRING_CTX)

    assert result == [StaticPrompt(raw="raw/path/to/file.txt", label="raw/path/to/file.txt")]
    assert "Could not find prompt file" in caplog.text
    assert "file.txt" in caplog.text


def test_missing_plain_text_reference_does_not_warn(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.WARNING, logger="promptsrc")
    info = ResolvedPathInfo(raw="Tell me a joke", resolved=str(tmp_path / "Tell me a joke"))

    load_prompt_contents(info, STRING_CTX)

    assert "Could not find prompt file" not in caplog.text


def test_forced_missing_file_raises_with_os_error_cause(tmp_path: Path) -> None:
    ctx = ResolutionContext(input_kind=InputKind.STRING, force_files=frozenset({"gone.txt"}))
    info = ResolvedPathInfo(raw="gone.txt", resolved=str(tmp_path / "gone.txt"))

    with pytest.raises(MissingFileError) as exc:
        load_prompt_contents(info, ctx)

    assert exc.value.path == str(tmp_path / "gone.txt")
    assert isinstance(exc.value.__cause__, OSError)


def test_strict_mode_makes_every_missing_file_fatal(tmp_path: Path) -> None:
    info = ResolvedPathInfo(raw="Tell me a joke", resolved=str(tmp_path / "Tell me a joke"))

    with pytest.raises(MissingFileError):
        load_prompt_contents(info, STRING_CTX, config=ResolutionConfig(strict_files=True))


def test_literal_text_is_split_on_delimiter(tmp_path: Path) -> None:
    raw = "First --- Second"
    info = ResolvedPathInfo(raw=raw, resolved=str(tmp_path / raw))

    result = load_prompt_contents(info, STRING_CTX)

    assert [p.raw for p in result] == ["First", "Second"]


# --- Directories ---


def test_directory_yields_one_prompt_per_file_in_name_order(write_files) -> None:
    names = ["b", "a", "d", "c", "e"]
    base = write_files({f"prompts/{n}.txt": f"Prompt {n.upper()}" for n in names})
    (base / "prompts" / "nested").mkdir()

    result = load_prompt_contents(_info(base / "prompts"), STRING_CTX)

    assert [p.raw for p in result] == [f"Prompt {n}" for n in "ABCDE"]
    assert all(p.raw == p.label for p in result)


def test_directory_with_non_utf8_file_raises_configuration_error(write_files) -> None:
    base = write_files({"prompts/a.txt": "hello"})
    (base / "prompts" / "b.txt").write_bytes(b"caf\xe9 latin-1")

    with pytest.raises(ConfigurationError, match="b.txt") as exc:
        load_prompt_contents(_info(base / "prompts"), STRING_CTX)

    assert isinstance(exc.value.__cause__, UnicodeDecodeError)
    assert exc.value.hint is not None


def test_non_utf8_text_file_raises_configuration_error(write_files) -> None:
    base = write_files({})
    (base / "prompts.txt").write_bytes(b"\xff\xfe\x00bad")

    with pytest.raises(ConfigurationError, match="not valid UTF-8"):
        load_prompt_contents(_info(base / "prompts.txt"), STRING_CTX)


def test_relative_resolved_path_is_anchored_to_base_path(write_files) -> None:
    base = write_files({"prompts.txt": "Anchored"})
    info = ResolvedPathInfo(raw="prompts.txt", resolved="prompts.txt")

    result = load_prompt_contents(info, STRING_CTX, str(base))

    assert [p.raw for p in result] == ["Anchored"]


def test_directory_with_single_file_is_not_delimiter_split(write_files) -> None:
    base = write_files({"prompts/only.txt": "One\n---\nTwo"})

    result = load_prompt_contents(_info(base / "prompts"), STRING_CTX)

    assert result == [StaticPrompt(raw="One\n---\nTwo", label="One\n---\nTwo")]


def test_empty_directory_has_no_prompts(tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()

    with pytest.raises(NoPromptsFoundError):
        load_prompt_contents(_info(tmp_path / "empty"), STRING_CTX)


# --- JSONL ---


def test_jsonl_emits_one_prompt_per_non_empty_line(write_files) -> None:
    lines = [
        '[{"role": "user", "content": "Who won the world series in {{ year }}?"}]',
        '[{"role": "user", "content": "Who won the superbowl in {{ year }}?"}]',
    ]
    base = write_files({"prompts.jsonl": f"{lines[0]}\r\n\n{lines[1]}\n"})

    result = load_prompt_contents(_info(base / "prompts.jsonl"), STRING_CTX)

    assert result == [StaticPrompt(raw=line, label=line) for line in lines]


def test_jsonl_lines_containing_delimiter_are_not_split(write_files) -> None:
    base = write_files({"prompts.jsonl": '{"text": "a --- b"}'})

    result = load_prompt_contents(_info(base / "prompts.jsonl"), STRING_CTX)

    assert [p.raw for p in result] == ['{"text": "a --- b"}']


def test_empty_jsonl_has_no_prompts(write_files) -> None:
    base = write_files({"prompts.jsonl": "\n\n"})

    with pytest.raises(NoPromptsFoundError, match="prompts.jsonl"):
        load_prompt_contents(_info(base / "prompts.jsonl"), STRING_CTX)


# --- Text files ---


def test_text_file_is_split_into_trimmed_prompts(write_files) -> None:
    base = write_files({"prompts.txt": "Test prompt 1\n---\nTest prompt 2"})

    result = load_prompt_contents(_info(base / "prompts.txt", "prompts.txt"), STRING_CTX)

    assert result == [
        StaticPrompt(raw="Test prompt 1", label="Test prompt 1"),
        StaticPrompt(raw="Test prompt 2", label="Test prompt 2"),
    ]


def test_text_file_uses_configured_delimiter(write_files) -> None:
    base = write_files({"prompts.txt": "A\n===\nB --- still B"})

    result = load_prompt_contents(
        _info(base / "prompts.txt"),
        STRING_CTX,
        config=ResolutionConfig(prompt_delimiter="==="),
    )

    assert [p.raw for p in result] == ["A", "B --- still B"]


@pytest.mark.parametrize("content", ["", "   \n\t", "---\n---\n", "  ---  "])
def test_blank_text_file_has_no_prompts(write_files, content: str) -> None:
    base = write_files({"prompts.txt": content})

    with pytest.raises(NoPromptsFoundError, match="prompts.txt"):
        load_prompt_contents(_info(base / "prompts.txt"), STRING_CTX)


def test_whitespace_literal_text_has_no_prompts(tmp_path: Path) -> None:
    info = ResolvedPathInfo(raw="   ", resolved=str(tmp_path / "   "))

    with pytest.raises(NoPromptsFoundError):
        load_prompt_contents(info, STRING_CTX)


def test_unknown_extension_on_existing_file_has_no_prompts(write_files) -> None:
    base = write_files({"prompt.md": "# Heading"})

    with pytest.raises(NoPromptsFoundError, match="prompt.md"):
        load_prompt_contents(_info(base / "prompt.md"), STRING_CTX)


# --- Python scripts ---


def test_python_script_without_named_input_uses_content_as_label(write_files) -> None:
    code = "print('dummy prompt')"
    base = write_files({"prompt.py": code})

    result = load_prompt_contents(_info(base / "prompt.py"), STRING_CTX)

    assert len(result) == 1
    prompt = result[0]
    assert isinstance(prompt, DynamicPrompt)
    assert prompt.raw == code
    assert prompt.label == code
    assert callable(prompt.function)


def test_python_script_content_with_delimiter_is_not_split(write_files) -> None:
    code = "# ---\nprint('a')\n# ---\n"
    base = write_files({"prompt.py": code})

    result = load_prompt_contents(_info(base / "prompt.py"), STRING_CTX)

    assert [p.raw for p in result] == [code]


def test_python_function_under_named_input_uses_display_label(write_files) -> None:
    base = write_files({"prompts.py": "def prompt1(context):\n    return 'x'\n"})
    key = str(base / "prompts.py:prompt1")
    ctx = ResolutionContext(input_kind=InputKind.NAMED, display_labels={key: "First prompt"})

    result = load_prompt_contents(ResolvedPathInfo(raw="prompts.py:prompt1", resolved=key), ctx)

    assert [(p.label, p.is_dynamic) for p in result] == [("First prompt", True)]


def test_named_python_function_without_display_falls_back_to_key(write_files) -> None:
    base = write_files({"prompts.py": "def prompt2(context):\n    return 'y'\n"})
    key = str(base / "prompts.py:prompt2")
    ctx = ResolutionContext(input_kind=InputKind.NAMED)

    result = load_prompt_contents(ResolvedPathInfo(raw="prompts.py:prompt2", resolved=key), ctx)

    assert result[0].label == key


@pytest.mark.asyncio
async def test_python_function_delegates_with_narrowed_provider(
    write_files, monkeypatch: pytest.MonkeyPatch
) -> None:
    base = write_files({"prompts.py": "def prompt1(context):\n    return 'x'\n"})
    calls: list[tuple[Any, ...]] = []

    async def fake_run_python(path, function_name, args, *, python_executable=None):
        calls.append((path, function_name, args, python_executable))
        return "rendered"

    monkeypatch.setattr("promptsrc.python_bridge.run_python", fake_run_python)
    info = ResolvedPathInfo(raw="prompts.py:prompt1", resolved=str(base / "prompts.py:prompt1"))
    config = ResolutionConfig(python_executable="python3")
    (prompt,) = load_prompt_contents(info, STRING_CTX, config=config)

    provider = {"id": "openai:gpt-4", "label": "GPT", "config": {"api_key": "secret"}}
    out = await prompt.function({"vars": {"topic": "bananas"}, "provider": provider})

    assert out == "rendered"
    assert calls == [
        (
            str(base / "prompts.py"),
            "prompt1",
            [{"vars": {"topic": "bananas"}, "provider": {"id": "openai:gpt-4", "label": "GPT"}}],
            "python3",
        )
    ]


@pytest.mark.asyncio
async def test_python_script_without_function_runs_whole_file(
    write_files, monkeypatch: pytest.MonkeyPatch
) -> None:
    base = write_files({"prompt.py": "print('hi')"})
    calls: list[tuple[str, Any]] = []

    async def fake_run_python_file(path, context, *, python_executable=None):
        calls.append((path, context))
        return "hi"

    monkeypatch.setattr("promptsrc.python_bridge.run_python_file", fake_run_python_file)
    (prompt,) = load_prompt_contents(_info(base / "prompt.py"), STRING_CTX)
    context = {"vars": {"name": "Ada"}}

    assert await prompt.function(context) == "hi"
    assert calls == [(str(base / "prompt.py"), context)]


# --- JavaScript modules ---


def test_javascript_module_binds_export_and_uses_display_label(write_files) -> None:
    base = write_files({"prompts.js": "module.exports.greet = () => 'hi';"})
    key = str(base / "prompts.js:greet")
    ctx = ResolutionContext(input_kind=InputKind.ARRAY, display_labels={key: "Greeting"})

    result = load_prompt_contents(ResolvedPathInfo(raw="prompts.js:greet", resolved=key), ctx)

    (prompt,) = result
    assert isinstance(prompt, DynamicPrompt)
    assert isinstance(prompt.function, ModuleFunction)
    assert prompt.function.export_name == "greet"
    assert prompt.raw == str(prompt.function)
    assert prompt.label == "Greeting"


def test_javascript_default_export_label_falls_back_to_rendering(write_files) -> None:
    base = write_files({"prompt.mjs": "export default () => 'hi';"})

    (prompt,) = load_prompt_contents(_info(base / "prompt.mjs"), STRING_CTX)

    assert prompt.label == prompt.raw == f"[Function: default] {base / 'prompt.mjs'}"


# --- Splitting ---


_segment = st.text(alphabet="abcxyz .,?!", min_size=1, max_size=20).filter(
    lambda s: s.strip() == s and s != ""
)


@given(segments=st.lists(_segment, min_size=2, max_size=6))
@settings(max_examples=50, deadline=None, derandomize=True)
def test_split_round_trips_trimmed_segments(segments: list[str]) -> None:
    """Property: joining labels with the delimiter and re-splitting is stable."""
    text = "\n---\n".join(segments)

    prompts = split_prompt_text(text, "---")

    assert [p.label for p in prompts] == segments
    assert all(p.raw == p.label for p in prompts)
    again = split_prompt_text("---".join(p.label for p in prompts), "---")
    assert again == prompts


@given(text=st.text(alphabet="ab -\n\t", max_size=40))
@settings(max_examples=100, deadline=None, derandomize=True)
def test_split_never_yields_empty_labels(text: str) -> None:
    assert all(p.label and p.label == p.label.strip() for p in split_prompt_text(text, "---"))
