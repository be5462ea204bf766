# util/functions.py
import hashlib


def clip_words(text: str, max_words: int = 12) -> str:
    """
    - Trim 'text' to at most `max_words` tokens separated by whitespace.
    - Adds an ellipsis when trimming occurs.
    """
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + " …"


def format_prompt(template: str, word: str) -> str:
    return template.replace("{word}", word)


def asset_key(language: str, text: str) -> str:
    """Stable id for a (language, text) clip; regenerating overwrites it."""
    return hashlib.sha1(f"{language}:{text}".encode("utf-8")).hexdigest()


def error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__
