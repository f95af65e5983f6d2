"""
Prompt Plans
============

Selection and rendering of the three prompt strategies.

A plan is chosen purely from knowledge-store availability and the articles
at hand:

- NoAccessPlan:   the knowledge store could not be reached
- NoResultsPlan:  reachable, but nothing relevant was found
- GroundedPlan:   at least one article to ground the reply in

The article block is serialized once per request; the same string is
embedded in the grounded template and passed as the ``context`` variable.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Sequence, Tuple, Union

from src.generation.domain.entities import Article, PreviousMessage, RequestContext


NO_ARTICLES_TEXT = "No relevant articles found."

NO_RESULTS_OPENING = (
    "I regret to inform you that I cannot find any specific information "
    "in our knowledge base related to your query."
)

# Articles never get trimmed below this many characters of content.
MIN_ARTICLE_CONTENT = 200
TRIM_MARKER = "..."

CITATION_RULES = """CRITICAL INSTRUCTIONS FOR USING KNOWLEDGE BASE ARTICLES:
1. You MUST use the relevant knowledge base articles from the context to inform your response
2. You MUST reference ALL used articles at the point where you use their information, using this exact format: (Article ID: <id>)
3. You MUST include at least one article reference if relevant articles are provided
4. You MUST NOT modify or abbreviate the article IDs in any way
5. You MUST use the article IDs exactly as provided"""

STYLE_RULES = """RESPONSE STYLE INSTRUCTIONS:
1. Show empathy and understanding for the customer's needs
2. Use clear, simple language that demonstrates patience
3. Provide specific examples when possible
4. Break down complex concepts into digestible parts
5. Maintain a helpful and supportive tone throughout"""


@dataclass(frozen=True)
class NoAccessPlan:
    """Knowledge store unreachable: apologise and offer general guidance."""
    kind: ClassVar[str] = "no_access"
    template: ClassVar[str] = """You are a helpful customer service AI assistant.

I apologize, but I am currently unable to access our knowledge base due to technical issues.
I will do my best to assist you with general guidance, but I cannot provide specific information from our documentation at this time.
{history}
Customer's question: {prompt}

Please provide a {tone} response that:
1. Acknowledges the knowledge base access limitation
2. Apologizes for the technical difficulty
3. Offers to help with general guidance
4. Suggests alternative options if available"""


@dataclass(frozen=True)
class NoResultsPlan:
    """Knowledge store reachable but empty-handed: lead with a disclaimer."""
    kind: ClassVar[str] = "no_results"
    template: ClassVar[str] = f"""You are a helpful customer service AI assistant.

{NO_RESULTS_OPENING}
{{history}}
Customer's question: {{prompt}}

Please provide a {{tone}} response that:
1. Starts with "{NO_RESULTS_OPENING}"
2. Shows empathy and understanding for the customer's needs
3. Explains that you can only provide general guidance at this time
4. Offers to help with alternative suggestions or clarification"""


@dataclass(frozen=True)
class GroundedPlan:
    """At least one article available: answer from it and cite it."""
    articles: Tuple[Article, ...]
    max_context_length: int = 4000
    kind: ClassVar[str] = "grounded"
    template: ClassVar[str] = f"""You are a helpful customer service AI assistant.

Use the following context to help answer the customer's question:

{{context}}

{STYLE_RULES}
{{history}}
Customer's question: {{prompt}}

Please provide a {{tone}} response that thoroughly answers the question while showing empathy and understanding."""


PromptPlan = Union[NoAccessPlan, NoResultsPlan, GroundedPlan]


def select_prompt_plan(
    has_valid_db_access: bool,
    relevant_articles: Sequence[Article],
    max_context_length: int = 4000,
) -> PromptPlan:
    """Pick the prompt strategy; access is checked before articles."""
    if not has_valid_db_access:
        return NoAccessPlan()
    if not relevant_articles:
        return NoResultsPlan()
    return GroundedPlan(tuple(relevant_articles), max_context_length)


def _format_article(article: Article, content: str) -> str:
    return (
        f"Article ID: {article.id}\n"
        f"Title: {article.title}\n"
        f"Content: {content}\n"
        f"IMPORTANT: You MUST reference this article as (Article ID: {article.id}) "
        f"when using its information."
    )


def _fit_contents(articles: Sequence[Article], max_length: int) -> List[str]:
    contents = [a.content for a in articles]
    full_length = len("\n\n".join(_format_article(a, a.content) for a in articles))
    if full_length <= max_length:
        return contents

    overhead = full_length - sum(len(c) for c in contents)
    share = max(
        (max_length - overhead) // len(articles) - len(TRIM_MARKER),
        MIN_ARTICLE_CONTENT,
    )
    return [c if len(c) <= share else c[:share].rstrip() + TRIM_MARKER for c in contents]


def serialize_context(plan: PromptPlan) -> str:
    """
    Render the knowledge context for a plan.

    For grounded plans this is every article (id, title, content and a
    citation reminder) followed by the citation rules. Other plans carry no
    articles.
    """
    if not isinstance(plan, GroundedPlan):
        return NO_ARTICLES_TEXT

    contents = _fit_contents(plan.articles, plan.max_context_length)
    block = "\n\n".join(
        _format_article(article, content)
        for article, content in zip(plan.articles, contents)
    )
    return f"{block}\n\n{CITATION_RULES}"


def format_history(messages: Sequence[PreviousMessage]) -> str:
    if not messages:
        return ""
    lines = [f"{m.role.capitalize()}: {m.content}" for m in messages]
    return "\nConversation so far:\n" + "\n".join(lines) + "\n"


def render_prompt(template: str, variables: Dict[str, str]) -> str:
    """Fill a plan template; substituted values are never re-parsed."""
    return template.format(**variables)


@dataclass
class AssembledPrompt:
    """Selected plan, its template, and the input variables for the model."""
    plan: PromptPlan
    template: str
    variables: Dict[str, str] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return render_prompt(self.template, self.variables)


class PromptAssembler:
    """Builds the model-ready prompt for a request."""

    def assemble(
        self,
        prompt: str,
        context: RequestContext,
        tone: str,
        max_context_length: int = 4000,
    ) -> AssembledPrompt:
        plan = select_prompt_plan(
            context.has_valid_db_access,
            context.relevant_articles,
            max_context_length,
        )
        variables = {
            "prompt": prompt,
            "tone": tone,
            "context": serialize_context(plan),
            "history": format_history(context.previous_messages),
        }
        return AssembledPrompt(plan=plan, template=plan.template, variables=variables)
