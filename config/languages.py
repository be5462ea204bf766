# config/languages.py
from typing import Dict, Optional
from pydantic import BaseModel
from config.settings import settings


class LanguageConfig(BaseModel):
    """
    Per-group generation settings. Items are grouped by language so that a
    whole group shares one prompt pair and one TTS voice.
    """

    code: str
    displayName: str
    ttsVoice: str
    systemPrompt: str
    userPromptTemplate: str


def _beginner_tutor(language: str) -> str:
    return (
        f"You are a helpful {language} language tutor, skilled in explaining new vocabulary "
        f"in an easy to understand way for users who are beginners in {language}. "
        f"You will be given a {language} word, and you will need to explain its meaning and usage."
    )


LANGUAGES: Dict[str, LanguageConfig] = {
    cfg.code: cfg
    for cfg in (
        LanguageConfig(
            code="chinese",
            displayName="Chinese (中文)",
            ttsVoice="echo",
            systemPrompt=(
                "You are a helpful Chinese language tutor, skilled in explaining new vocabulary "
                "in an easy to understand way for users who already know only a few elementary "
                "Chinese words. You will be given a Chinese word, and you will need to explain its meaning."
            ),
            userPromptTemplate=(
                'Create an easy to understand chinese sentence for this word that will let me easily '
                'infer the meaning of this word: "{word}", then explain the meaning using very simple '
                'chinese words. Use this format: 这个词是"{word}"。"{word}"的意思是。。。，英文翻译是。。。比如，。。。'
            ),
        ),
        LanguageConfig(
            code="spanish",
            displayName="Spanish (Español)",
            ttsVoice="alloy",
            systemPrompt=_beginner_tutor("Spanish"),
            userPromptTemplate=(
                'Create an easy to understand Spanish sentence for this word that will help me '
                'understand its meaning: "{word}". Then explain the meaning using simple Spanish. '
                'Use this format: La palabra es "{word}". "{word}" significa... En inglés es... Por ejemplo...'
            ),
        ),
        LanguageConfig(
            code="french",
            displayName="French (Français)",
            ttsVoice="alloy",
            systemPrompt=_beginner_tutor("French"),
            userPromptTemplate=(
                'Create an easy to understand French sentence for this word that will help me '
                'understand its meaning: "{word}". Then explain the meaning using simple French. '
                "Use this format: Le mot est \"{word}\". \"{word}\" signifie... En anglais c'est... Par exemple..."
            ),
        ),
        LanguageConfig(
            code="german",
            displayName="German (Deutsch)",
            ttsVoice="alloy",
            systemPrompt=_beginner_tutor("German"),
            userPromptTemplate=(
                'Create an easy to understand German sentence for this word that will help me '
                'understand its meaning: "{word}". Then explain the meaning using simple German. '
                'Use this format: Das Wort ist "{word}". "{word}" bedeutet... Auf Englisch ist es... Zum Beispiel...'
            ),
        ),
        LanguageConfig(
            code="italian",
            displayName="Italian (Italiano)",
            ttsVoice="alloy",
            systemPrompt=_beginner_tutor("Italian"),
            userPromptTemplate=(
                'Create an easy to understand Italian sentence for this word that will help me '
                'understand its meaning: "{word}". Then explain the meaning using simple Italian. '
                'Use this format: La parola è "{word}". "{word}" significa... In inglese è... Per esempio...'
            ),
        ),
        LanguageConfig(
            code="japanese",
            displayName="Japanese (日本語)",
            ttsVoice="nova",
            systemPrompt=_beginner_tutor("Japanese"),
            userPromptTemplate=(
                'Create an easy to understand Japanese sentence for this word that will help me '
                'understand its meaning: "{word}". Then explain the meaning using simple Japanese '
                "with furigana for kanji. Use this format: この言葉は「{word}」です。「{word}」の意味は...、英語で...、例えば..."
            ),
        ),
        LanguageConfig(
            code="korean",
            displayName="Korean (한국어)",
            ttsVoice="nova",
            systemPrompt=_beginner_tutor("Korean"),
            userPromptTemplate=(
                'Create an easy to understand Korean sentence for this word that will help me '
                'understand its meaning: "{word}". Then explain the meaning using simple Korean. '
                'Use this format: 이 단어는 "{word}"입니다. "{word}"의 뜻은 ...이고, 영어로는 ...입니다. 예를 들면 ...'
            ),
        ),
    )
}


def get_language_config(code: Optional[str]) -> Optional[LanguageConfig]:
    return LANGUAGES.get((code or settings.DEFAULT_LANGUAGE).lower())
