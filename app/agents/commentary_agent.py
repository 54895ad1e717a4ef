import logging
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field
from pydantic_ai import Agent
from pydantic_ai.models.groq import GroqModel
from pydantic_ai.providers.groq import GroqProvider

from app import config

# Module logger
logger = logging.getLogger(__name__)


class AICommentary(BaseModel):
    """Structured commentary returned alongside search results"""
    explanation: str
    key_themes: List[str] = Field(default_factory=list)
    historical_context: Optional[str] = None
    application_today: Optional[str] = None
    related_verses: List[str] = Field(default_factory=list)


# Query/verse keywords -> themes
THEME_KEYWORDS = {
    "love": ["Love", "Compassion", "Grace"],
    "faith": ["Faith", "Trust", "Belief"],
    "hope": ["Hope", "Promise", "Future"],
    "peace": ["Peace", "Rest", "Comfort"],
    "salvation": ["Salvation", "Redemption", "Forgiveness"],
    "prayer": ["Prayer", "Communication with God", "Worship"],
    "wisdom": ["Wisdom", "Understanding", "Knowledge"],
    "strength": ["Strength", "Power", "Courage"],
    "joy": ["Joy", "Celebration", "Blessing"],
    "forgiveness": ["Forgiveness", "Mercy", "Grace"],
}

# Words found in verse text -> theme
TEXT_THEMES = (
    (("love", "beloved"), "Love"),
    (("faith", "believe"), "Faith"),
    (("hope",), "Hope"),
    (("peace",), "Peace"),
    (("salvation", "saved"), "Salvation"),
    (("forgive", "mercy"), "Forgiveness"),
    (("wisdom", "wise"), "Wisdom"),
)

RELATED_VERSES = {
    "Love": ["1 John 4:8", "1 Corinthians 13:4", "Romans 8:38"],
    "Faith": ["Hebrews 11:1", "Romans 10:17", "Mark 11:24"],
    "Hope": ["Romans 15:13", "Jeremiah 29:11", "1 Peter 1:3"],
    "Peace": ["Philippians 4:7", "Isaiah 26:3", "John 14:27"],
    "Salvation": ["Romans 10:9", "Ephesians 2:8", "Acts 4:12"],
    "Forgiveness": ["1 John 1:9", "Ephesians 4:32", "Matthew 6:14"],
    "Wisdom": ["Proverbs 3:5", "James 1:5", "Proverbs 9:10"],
}

POPULAR_VERSES = ["John 3:16", "Romans 8:28", "Philippians 4:13", "Psalm 23:1"]

MAX_THEMES = 5
MAX_RELATED_VERSES = 6


def _unique(items: Sequence[str]) -> List[str]:
    return list(dict.fromkeys(items))


def extract_themes(query: str, results: Sequence) -> List[str]:
    """Pick up to five themes from the query and the text of the found verses"""
    themes = []
    query_lower = query.lower()
    all_text = " ".join(result.text.lower() for result in results)

    for keyword, values in THEME_KEYWORDS.items():
        if keyword in query_lower:
            themes.extend(values)

    for words, theme in TEXT_THEMES:
        if any(word in all_text for word in words):
            themes.append(theme)

    return _unique(themes)[:MAX_THEMES]


def suggest_related_verses(themes: Sequence[str]) -> List[str]:
    suggestions = []
    for theme in themes:
        suggestions.extend(RELATED_VERSES.get(theme, []))

    if not suggestions:
        suggestions = list(POPULAR_VERSES)

    return _unique(suggestions)[:MAX_RELATED_VERSES]


def fallback_commentary(query: str, results: Sequence, version: str) -> AICommentary:
    """Deterministic commentary used when no model is configured or the call fails"""
    count = len(results)
    plural = "" if count == 1 else "s"
    themes = extract_themes(query, results)
    return AICommentary(
        explanation=(
            f'The search for "{query}" returned {count} verse{plural} from the {version} Bible. '
            f"These passages can be read together to understand what Scripture says on this subject."
        ),
        key_themes=themes,
        related_verses=suggest_related_verses(themes),
    )


class CommentaryAgent:
    """
    Asks a language model for a structured commentary on search results.

    The model only sees verses that were read from the database. Without an
    API key (or if the model call fails) a deterministic commentary built
    from the theme tables above is returned instead.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None, agent=None):
        self.model_name = model_name or config.COMMENTARY_MODEL
        if agent is not None:
            self.agent = agent
        elif api_key:
            model = GroqModel(self.model_name, provider=GroqProvider(api_key=api_key))
            self.agent = Agent(
                model,
                output_type=AICommentary,
                system_prompt=(
                    "You write short Bible study commentary. Only discuss the verses "
                    "provided to you and never quote verses that were not provided."
                ),
            )
        else:
            logger.warning("GROQ_API_KEY is not set - AI commentary will use the built-in fallback")
            self.agent = None

    @staticmethod
    def build_prompt(query: str, results: Sequence, version: str) -> str:
        verses = "\n".join(f"{result.reference} {result.text}" for result in results)
        return f"Search: {query}\nVersion: {version}\n\nVerses:\n{verses}"

    async def generate(self, query: str, results: Sequence, version: str) -> AICommentary:
        if self.agent is None:
            return fallback_commentary(query, results, version)

        try:
            result = await self.agent.run(self.build_prompt(query, results, version))
            return result.output
        except Exception as e:
            logger.error("AI commentary failed, using fallback: %s", str(e))
            return fallback_commentary(query, results, version)
