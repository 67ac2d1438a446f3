from __future__ import annotations

from django.test import SimpleTestCase
from openai import OpenAIError

from apps.documents.services.exceptions import BackendError, ExpansionError
from apps.documents.services.expansion import ChapterExpander
from apps.documents.services.schemas import ChapterDescriptor

from .fakes import FakeChatBackend, make_client, make_config


class TokenBudgetTests(SimpleTestCase):
    def setUp(self):
        self.expander = ChapterExpander(make_client(FakeChatBackend([])))

    def test_budget_grows_with_pages_until_the_ceiling(self):
        budgets = [self.expander.token_budget(pages) for pages in range(1, 200)]
        self.assertEqual(budgets[0], 85)
        self.assertEqual(budgets, sorted(budgets))
        self.assertTrue(all(1 <= b <= 8000 for b in budgets))
        self.assertEqual(self.expander.token_budget(500), 8000)

    def test_budget_respects_a_lower_configured_ceiling(self):
        expander = ChapterExpander(make_client(FakeChatBackend([]), config=make_config(max_tokens=1000)))
        self.assertEqual(expander.token_budget(50), 1000)

    def test_non_positive_pages_still_get_a_minimal_budget(self):
        self.assertEqual(self.expander.token_budget(0), 85)
        self.assertEqual(self.expander.target_words(0), 250)


class ExpandChapterTests(SimpleTestCase):
    def test_described_chapter_needs_one_request(self):
        backend = FakeChatBackend(["## Section\n\nText."])
        chapter = ChapterDescriptor(title="Intro", pages=2, description="Starts things off.")

        body = ChapterExpander(make_client(backend)).expand_chapter(chapter)

        self.assertEqual(body, "## Section\n\nText.")
        self.assertEqual(len(backend.calls), 1)
        prompt = backend.system_prompts()[0]
        self.assertIn("Write the full text of the chapter 'Intro'.", prompt)
        self.assertIn("Page budget: 2 page(s), about 500 words.", prompt)
        self.assertIn("Starts things off.", prompt)
        self.assertNotIn("Chapter Blueprint", prompt)
        self.assertEqual(backend.calls[0]["max_tokens"], 170)

    def test_missing_description_is_synthesised_first(self):
        backend = FakeChatBackend(["Two sentences. Exactly two.", "Chapter body."])
        chapter = ChapterDescriptor(title="Intro", pages=1)

        body = ChapterExpander(make_client(backend)).expand_chapter(chapter)

        self.assertEqual(body, "Chapter body.")
        self.assertEqual(chapter.description, "Two sentences. Exactly two.")
        prompts = backend.system_prompts()
        self.assertIn("2-sentence description of the chapter 'Intro'", prompts[0])
        self.assertEqual(backend.calls[0]["max_tokens"], 200)
        self.assertIn("Two sentences. Exactly two.", prompts[1])

    def test_description_is_only_synthesised_once(self):
        backend = FakeChatBackend(["Made up.", "Body one.", "Body two."])
        expander = ChapterExpander(make_client(backend))
        chapter = ChapterDescriptor(title="Intro", pages=1)

        expander.expand_chapter(chapter)
        expander.expand_chapter(chapter)

        self.assertEqual(len(backend.calls), 3)

    def test_blueprint_is_embedded_in_the_prompt(self):
        backend = FakeChatBackend(["Body."])
        chapter = ChapterDescriptor(title="Intro", pages=1, description="d")
        blueprint = {
            "sections": [
                {"heading": "Getting Started", "subsections": ["Install"], "codeSnippets": [], "datasets": [], "keyTakeaways": []}
            ]
        }

        ChapterExpander(make_client(backend)).expand_chapter(chapter, blueprint)

        prompt = backend.system_prompts()[0]
        self.assertIn("### Chapter Blueprint", prompt)
        self.assertIn("Getting Started", prompt)
        self.assertIn("Do not introduce new top-level sections.", prompt)

    def test_backend_failure_is_reported_with_the_chapter(self):
        backend = FakeChatBackend([OpenAIError("down")] * 3)
        chapter = ChapterDescriptor(title="Doomed", pages=1, description="d")

        with self.assertRaises(ExpansionError) as ctx:
            ChapterExpander(make_client(backend)).expand_chapter(chapter)

        self.assertEqual(ctx.exception.chapter_title, "Doomed")
        self.assertIsInstance(ctx.exception.cause, BackendError)
        self.assertIn("Doomed", str(ctx.exception))
