from __future__ import annotations

import re

from django.test import SimpleTestCase

from apps.documents.services.assembly import DEFAULT_BANNER, assemble_document, render_table_of_contents
from apps.documents.services.schemas import ChapterDescriptor

_TOC_LINE_RE = re.compile(r"^\d+\. .+ \(\d+ pp\.\)$", re.MULTILINE)
_H1_RE = re.compile(r"^# .+$", re.MULTILINE)


class AssembleDocumentTests(SimpleTestCase):
    def setUp(self):
        self.chapters = [
            ChapterDescriptor(title="Chapter 1: Intro", pages=1),
            ChapterDescriptor(title="Chapter 2: Depth", pages=2),
        ]
        self.bodies = ["## Overview\n\nFirst body.", "## Details\n\nSecond body."]

    def test_two_chapter_layout(self):
        document = assemble_document("Graph Theory", self.chapters, self.bodies)

        self.assertTrue(document.startswith("**Graph Theory**\n\n"))
        self.assertIn(f"> {DEFAULT_BANNER}", document)
        self.assertIn("## Table of Contents", document)
        self.assertEqual(
            _TOC_LINE_RE.findall(document),
            ["1. Chapter 1: Intro (1 pp.)", "2. Chapter 2: Depth (2 pp.)"],
        )
        self.assertEqual(_H1_RE.findall(document), ["# Chapter 1: Intro", "# Chapter 2: Depth"])
        self.assertLess(document.index("First body."), document.index("# Chapter 2: Depth"))
        self.assertTrue(document.endswith("---\n"))

    def test_chapters_are_separated_by_rules(self):
        document = assemble_document("T", self.chapters, self.bodies)
        between = document[document.index("First body."):document.index("# Chapter 2: Depth")]
        self.assertIn("\n---\n", between)

    def test_same_input_yields_identical_output(self):
        first = assemble_document("T", self.chapters, self.bodies, banner="custom")
        second = assemble_document("T", self.chapters, self.bodies, banner="custom")
        self.assertEqual(first, second)
        self.assertIn("> custom", first)

    def test_blank_body_keeps_its_heading(self):
        document = assemble_document("T", self.chapters, ["   ", "Body."])
        self.assertIn("# Chapter 1: Intro\n\n---", document)

    def test_body_count_must_match_chapters(self):
        with self.assertRaises(ValueError):
            assemble_document("T", self.chapters, ["only one"])

    def test_table_of_contents_preserves_outline_order(self):
        self.assertEqual(
            render_table_of_contents(list(reversed(self.chapters))),
            ["1. Chapter 2: Depth (2 pp.)", "2. Chapter 1: Intro (1 pp.)"],
        )
