from agentic_rag.agent.detector import ToolCallDetector


def _paths(detector: ToolCallDetector, text: str) -> list[str]:
    return [invocation.get_argument("file_path") for invocation in detector.detect(text)]


def test_relative_tokens_resolve_against_document_dir() -> None:
    detector = ToolCallDetector(document_dir="/docs")

    invocations = detector.detect("Please summarize this file: test.txt and report.rs")

    assert [invocation.name for invocation in invocations] == ["file_summarizer"] * 2
    assert [invocation.arguments for invocation in invocations] == [
        {"file_path": "/docs/test.txt"},
        {"file_path": "/docs/report.rs"},
    ]


def test_absolute_tokens_are_kept() -> None:
    assert _paths(ToolCallDetector("/docs"), "look at /srv/app/main.py") == ["/srv/app/main.py"]


def test_duplicates_are_kept_in_order() -> None:
    detector = ToolCallDetector("/docs")

    assert _paths(detector, "a.txt b.py a.txt") == ["/docs/a.txt", "/docs/b.py", "/docs/a.txt"]


def test_non_matching_tokens_are_ignored() -> None:
    detector = ToolCallDetector("/docs")

    assert detector.detect("no files here, version 1.2 and image.png or txt") == []


def test_extensions_are_configurable() -> None:
    detector = ToolCallDetector("/docs", extensions=(".md",))

    assert _paths(detector, "read README.md and notes.txt") == ["/docs/README.md"]
