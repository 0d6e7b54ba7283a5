"""Context assembler — merges local and web results into prompt text."""

from context_chat.models import ScoredSnippet, WebResult

_CONTEXT_PREAMBLE = "Use the following context when relevant:\n\n"


def build_context_block(
    snippets: list[ScoredSnippet],
    web_results: list[WebResult],
) -> str:
    """Format retrieved material into one prompt-ready block.

    Args:
        snippets: Local corpus hits, already ranked.
        web_results: Normalized search results.

    Returns:
        A "local" section and/or a "web" section separated by a blank
        line. Sections with no input are omitted; empty string when both
        inputs are empty.
    """
    blocks: list[str] = []

    if snippets:
        local = "\n\n".join(
            f"[LOCAL {i}] {s.source}:{s.line}\n{s.text}"
            for i, s in enumerate(snippets, start=1)
        )
        blocks.append(f"Local project context:\n{local}")

    if web_results:
        web = "\n\n".join(
            f"[WEB {i}] {w.title}\nURL: {w.link}\nSummary: {w.snippet}"
            for i, w in enumerate(web_results, start=1)
        )
        blocks.append(f"Internet search context:\n{web}")

    return "\n\n".join(blocks)


def build_system_instruction(base: str, extra: str = "", context: str = "") -> str:
    """Join base prompt, per-call instruction and context, skipping blanks."""
    parts = [base, extra, _CONTEXT_PREAMBLE + context if context else ""]
    return "\n\n".join(part for part in parts if part)
