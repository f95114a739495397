# Configuration script for `feldspar repl examples/research.py`.
# configure_model, make_tool, register_tool, lookup_env and the STRING /
# NUMBER / BOOL type tags are provided by the loader.

from research_tools import extract_text, fetch_summary, first_sentence

configure_model(
    "http://localhost:11434",
    None,
    "llama3.1",
    "ollama",
)

set_system_prompt("You are a research assistant. Use tools for facts.")

register_tool(
    make_tool(
        "research",
        {"topic": STRING},
        {"summary": STRING},
        "Look up a short encyclopedia summary of a topic.",
        [fetch_summary, extract_text, first_sentence],
    )
)

register_tool(
    make_tool(
        "shout",
        {"text": STRING},
        {"loud": STRING},
        "Upper-case some text.",
        [str.upper],
    )
)
