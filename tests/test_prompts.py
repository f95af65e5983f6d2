"""
Prompt plan tests.
"""
import pytest

from src.generation.domain import (
    GroundedPlan,
    NoAccessPlan,
    NoResultsPlan,
    PreviousMessage,
    PromptAssembler,
    RequestContext,
    select_prompt_plan,
    serialize_context,
)
from src.generation.domain.prompts import (
    CITATION_RULES,
    NO_ARTICLES_TEXT,
    NO_RESULTS_OPENING,
    format_history,
)
from tests.conftest import make_article


class TestPlanSelection:

    # Access failure wins even when articles are present
    def test_no_access(self):
        plan = select_prompt_plan(False, [make_article()])
        assert isinstance(plan, NoAccessPlan)

    # Reachable store with nothing found
    def test_no_results(self):
        assert isinstance(select_prompt_plan(True, []), NoResultsPlan)

    # Articles available
    def test_grounded(self):
        plan = select_prompt_plan(True, [make_article()], 1000)
        assert isinstance(plan, GroundedPlan)
        assert plan.max_context_length == 1000
        assert plan.articles[0].id == "A1"

    # Every template takes the prompt and tone
    def test_templates_placeholders(self):
        for plan in (NoAccessPlan(), NoResultsPlan(), GroundedPlan((make_article(),))):
            assert "{prompt}" in plan.template
            assert "{tone}" in plan.template
            assert "{history}" in plan.template

    # Only the grounded template embeds the article block
    def test_context_placeholder(self):
        assert "{context}" in GroundedPlan.template
        assert "{context}" not in NoAccessPlan.template
        assert "{context}" not in NoResultsPlan.template


class TestSerialization:

    # Article data and citation rules are serialized together
    def test_grounded_block(self):
        plan = GroundedPlan((make_article("kb-42", "Billing FAQ", "Invoices are monthly."),))
        block = serialize_context(plan)

        assert "Article ID: kb-42" in block
        assert "Title: Billing FAQ" in block
        assert "Invoices are monthly." in block
        assert "(Article ID: kb-42)" in block
        assert block.endswith(CITATION_RULES)

    # Non-grounded plans carry no article data
    def test_no_articles(self):
        assert serialize_context(NoResultsPlan()) == NO_ARTICLES_TEXT
        assert serialize_context(NoAccessPlan()) == NO_ARTICLES_TEXT

    # Long bodies are trimmed but ids and titles survive
    def test_trimming(self):
        articles = (
            make_article("A1", "First", "x" * 2000),
            make_article("A2", "Second", "y" * 2000),
        )
        block = serialize_context(GroundedPlan(articles, max_context_length=300))

        assert "x" * 201 not in block
        assert "x" * 200 + "..." in block
        assert "Article ID: A1" in block
        assert "Article ID: A2" in block
        assert "Title: Second" in block
        assert "(Article ID: A2)" in block

    # Trimmed block stays within the configured length
    def test_block_within_limit(self):
        articles = tuple(make_article(f"A{i}", f"Title {i}", "z" * 5000) for i in range(5))
        serialized = serialize_context(GroundedPlan(articles, max_context_length=4000))
        block = serialized[: -len("\n\n" + CITATION_RULES)]

        assert serialized.endswith(CITATION_RULES)
        assert len(block) <= 4000
        assert "z" * 300 in block
        for i in range(5):
            assert f"(Article ID: A{i})" in block

    # Short bodies are left untouched
    def test_no_trimming_when_fits(self):
        article = make_article(content="short body")
        block = serialize_context(GroundedPlan((article,), max_context_length=4000))
        assert "Content: short body\n" in block


class TestHistory:

    # Empty history renders nothing
    def test_empty(self):
        assert format_history([]) == ""

    # Turns render with their role
    def test_turns(self):
        text = format_history([
            PreviousMessage(role="customer", content="It broke"),
            PreviousMessage(role="agent", content="Which version?"),
        ])
        assert "Conversation so far:" in text
        assert "Customer: It broke" in text
        assert "Agent: Which version?" in text


class TestAssembler:

    @pytest.fixture
    def assembler(self):
        return PromptAssembler()

    # Grounded prompt contains every supplied id verbatim
    def test_grounded_ids(self, assembler):
        articles = [make_article("a1b2-c3"), make_article("KB_77", "Other")]
        context = RequestContext(relevant_articles=articles)
        assembled = assembler.assemble("Help me", context, "friendly")

        assert assembled.plan.kind == "grounded"
        for article_id in ("a1b2-c3", "KB_77"):
            assert article_id in assembled.variables["context"]
            assert f"(Article ID: {article_id})" in assembled.text

    # Variables carry prompt, tone and context
    def test_variables(self, assembler):
        assembled = assembler.assemble("Help me", RequestContext(), "formal")

        assert assembled.variables["prompt"] == "Help me"
        assert assembled.variables["tone"] == "formal"
        assert assembled.variables["context"] == NO_ARTICLES_TEXT
        assert assembled.template == NoResultsPlan.template

    # No access selects the apology template
    def test_no_access_text(self, assembler):
        context = RequestContext(has_valid_db_access=False)
        assembled = assembler.assemble("Where is my order?", context, "professional")

        assert assembled.plan.kind == "no_access"
        assert "unable to access our knowledge base" in assembled.text
        assert "Where is my order?" in assembled.text
        assert "professional response" in assembled.text

    # No results template opens with the disclaimer
    def test_no_results_text(self, assembler):
        assembled = assembler.assemble("Where is my order?", RequestContext(), "casual")
        assert NO_RESULTS_OPENING in assembled.text
        assert "casual response" in assembled.text

    # Braces in user input are not treated as placeholders
    def test_braces_in_prompt(self, assembler):
        assembled = assembler.assemble("What does {context} mean?", RequestContext(), "casual")
        assert "What does {context} mean?" in assembled.text

    # Conversation history reaches the prompt
    def test_history_rendered(self, assembler):
        context = RequestContext(previous_messages=[PreviousMessage(role="customer", content="Hi")])
        assembled = assembler.assemble("Question", context, "casual")
        assert "Customer: Hi" in assembled.text
