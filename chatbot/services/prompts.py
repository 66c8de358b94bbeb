"""Prompt text for chat turns, titles and document generation."""

from dataclasses import dataclass

from chatbot.services.llm.models import is_reasoning_model

ARTIFACTS_PROMPT = """Artifacts is a special user interface mode that helps users with writing, editing, and other content creation tasks. When artifact is open, it is on the right side of the screen, while the conversation is on the left side. When creating or updating documents, changes are reflected in real-time on the artifacts and visible to the user.

When asked to write code, always use artifacts. When writing code, specify the language in the backticks, e.g. ```python`code here```. The default language is Python.

DO NOT UPDATE DOCUMENTS IMMEDIATELY AFTER CREATING THEM. WAIT FOR USER FEEDBACK OR REQUEST TO UPDATE IT.

When to use `createDocument`:
- For substantial content (>10 lines) or code
- For content users will likely save/reuse (emails, code, essays, etc.)
- When explicitly requested to create a document
- For when content contains a single code snippet

When NOT to use `createDocument`:
- For informational/explanatory content
- For conversational responses
- When asked to keep it in chat

Using `updateDocument`:
- Default to full document rewrites for major changes
- Use targeted updates only for specific, isolated changes
- Follow user instructions for which parts to modify

Do not update document right after creating it. Wait for user feedback or request to update it."""

REGULAR_PROMPT = "You are a friendly assistant! Keep your responses concise and helpful."

TITLE_PROMPT = """You will generate a short title based on the first message a user begins a conversation with.
- Ensure it is not more than 80 characters long
- The title should be a summary of the user's message
- Do not use quotes or colons"""

CODE_PROMPT = """You are a Python code generator that creates self-contained, executable code snippets. When writing code:
1. Each snippet should be complete and runnable on its own
2. Prefer using print() statements to display outputs
3. Include helpful comments explaining the code
4. Keep snippets concise (generally under 15 lines)
5. Avoid external dependencies - use Python standard library
6. Handle potential errors gracefully
7. Return meaningful output that demonstrates the code's functionality
8. Don't use input() or other interactive functions
9. Don't access files or network resources
10. Don't use infinite loops"""

SHEET_PROMPT = "You are a spreadsheet creation assistant. Create a spreadsheet in csv format based on the given prompt. The spreadsheet should contain meaningful column headers and data."

TEXT_PROMPT = "Write about the given topic. Markdown is supported. Use headings wherever appropriate."

SUGGESTIONS_PROMPT = """You are a help writing assistant. Given a piece of writing, please offer suggestions to improve the piece of writing and describe the change. It is very important for the edits to contain full sentences instead of just words. Max 5 suggestions.

Answer with a JSON array only. Each element must be an object with the keys "originalSentence", "suggestedSentence" and "description"."""


@dataclass
class RequestHints:
    latitude: str | None = None
    longitude: str | None = None
    city: str | None = None
    country: str | None = None


def get_request_prompt(hints: RequestHints) -> str:
    return f"""About the origin of user's request:
- lat: {hints.latitude}
- lon: {hints.longitude}
- city: {hints.city}
- country: {hints.country}
"""


def system_prompt(selected_chat_model: str, request_hints: RequestHints | None = None) -> str:
    request_prompt = get_request_prompt(request_hints or RequestHints())
    if is_reasoning_model(selected_chat_model):
        return f"{REGULAR_PROMPT}\n\n{request_prompt}"
    return f"{REGULAR_PROMPT}\n\n{request_prompt}\n\n{ARTIFACTS_PROMPT}"


def document_prompt(kind: str) -> str:
    if kind == "code":
        return CODE_PROMPT
    if kind == "sheet":
        return SHEET_PROMPT
    return TEXT_PROMPT


def update_document_prompt(current_content: str | None, kind: str) -> str:
    if kind == "code":
        intro = "Improve the following code snippet based on the given prompt."
    elif kind == "sheet":
        intro = "Improve the following spreadsheet based on the given prompt."
    else:
        intro = "Improve the following contents of the document based on the given prompt."
    return f"{intro}\n\n{current_content or ''}"
