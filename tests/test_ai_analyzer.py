import dataclasses
import json
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_screener.ai_analyzer import (  # noqa: E402
    SECTION_PRIORITY,
    AIAnalyzer,
    OpenAIBackend,
    clean_json_response,
    prepare_resume_excerpt,
    section_rank,
)
from resume_screener.config import AIAvailability, load_settings  # noqa: E402
from resume_screener.errors import (  # noqa: E402
    AIResponseError,
    ConfigurationError,
    MaxRetriesExceededError,
)
from resume_screener.models import DegreeLevel, JobRequirements  # noqa: E402
from resume_screener.retry import RetryPolicy  # noqa: E402


class FakeBackend:
    model_name = "fake-model"

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []

    def generate(self, prompt, system=None, temperature=None):
        self.prompts.append({"prompt": prompt, "system": system, "temperature": temperature})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class CleanJsonResponseTests(unittest.TestCase):
    def test_fenced_reply(self):
        raw = '```json\n{"summary": "Strong backend engineer"}\n```'
        self.assertEqual(clean_json_response(raw), {"summary": "Strong backend engineer"})

    def test_prose_around_object(self):
        raw = 'Here is the analysis: {"a": {"b": 1}} Hope this helps!'
        self.assertEqual(clean_json_response(raw), {"a": {"b": 1}})

    def test_unusable_replies(self):
        for raw in (None, "", "no json here", "{broken", "[1, 2, 3]", "} backwards {"):
            with self.subTest(raw=raw):
                self.assertIsNone(clean_json_response(raw))


class PrepareResumeExcerptTests(unittest.TestCase):
    def test_short_text_is_unchanged(self):
        self.assertEqual(prepare_resume_excerpt("  short resume  ", 100), "short resume")

    def test_priority_sections_come_first_and_budget_holds(self):
        text = "Hobbies\n" + "chess " * 40 + "\n\nExperience\nAcme Corp backend lead\n\nSkills\nPython, AWS"
        excerpt = prepare_resume_excerpt(text, 60)
        self.assertTrue(excerpt.startswith("Experience\nAcme Corp backend lead"))
        self.assertLessEqual(len(excerpt), 60)

    def test_sections_follow_priority_then_resume_order(self):
        text = "Summary\nBackend engineer\n\nSkills\nPython\n\nHobbies\nChess\n\nProjects\nBilling engine"
        excerpt = prepare_resume_excerpt(text, len(text) - 1)
        headings = [section.splitlines()[0] for section in excerpt.split("\n\n")]
        self.assertEqual(headings, ["Projects", "Skills", "Summary", "Hobbies"])

    def test_section_rank(self):
        self.assertEqual(section_rank("Work Experience\nAcme"), 0)
        self.assertEqual(section_rank("Hobbies\nChess"), len(SECTION_PRIORITY))
        self.assertEqual(section_rank(""), len(SECTION_PRIORITY))


class AIAnalyzerTests(unittest.TestCase):
    def setUp(self):
        self.delays = []
        self.policy = RetryPolicy(max_attempts=3, base_delay=1.0, multiplier=2.0, sleep=self.delays.append)
        self.settings = dataclasses.replace(load_settings(), resume_char_budget=200, compare_char_budget=30)

    def make_analyzer(self, backend, configured=True):
        availability = AIAvailability(configured, "" if configured else "no key")
        return AIAnalyzer(backend, availability, retry_policy=self.policy, config=self.settings)

    def test_analyze_tags_result(self):
        backend = FakeBackend(['{"contact": {"name": "Jane Doe"}, "summary": "Solid"}'])
        result = self.make_analyzer(backend).analyze("Jane Doe\nPython developer")
        self.assertTrue(result["aiPowered"])
        self.assertEqual(result["aiModel"], "fake-model")
        self.assertEqual(result["contact"]["name"], "Jane Doe")

    def test_prompt_embeds_job_requirements_and_truncated_text(self):
        backend = FakeBackend(["{}"])
        job = JobRequirements(["Python", "AWS"], 2, 6, DegreeLevel.MASTERS)
        self.make_analyzer(backend).analyze("x" * 1000, job)
        sent = backend.prompts[0]
        self.assertIn(json.dumps(job.to_dict(), indent=2), sent["prompt"])
        self.assertIn("x" * 200, sent["prompt"])
        self.assertNotIn("x" * 201, sent["prompt"])
        self.assertIn("valid JSON only", sent["system"])

    def test_unconfigured_raises_without_calling_backend(self):
        backend = FakeBackend(["{}"])
        with self.assertRaises(ConfigurationError):
            self.make_analyzer(backend, configured=False).analyze("text")
        self.assertEqual(backend.prompts, [])

        with self.assertRaises(ConfigurationError):
            self.make_analyzer(None).analyze("text")

    def test_unparsable_reply_raises(self):
        backend = FakeBackend(["I cannot help with that."])
        with self.assertRaises(AIResponseError):
            self.make_analyzer(backend).analyze("text")

    def test_transient_failures_are_retried(self):
        backend = FakeBackend([Exception("429 rate limit"), Exception("503"), '{"summary": "ok"}'])
        result = self.make_analyzer(backend).analyze("text")
        self.assertEqual(result["summary"], "ok")
        self.assertEqual(len(backend.prompts), 3)
        self.assertEqual(self.delays, [1.0, 2.0])

    def test_exhausted_retries(self):
        backend = FakeBackend([Exception("429")] * 3)
        with self.assertRaises(MaxRetriesExceededError):
            self.make_analyzer(backend).analyze("text")

    def test_interview_questions(self):
        backend = FakeBackend(['{"questions": [{"question": "Why Python?"}]}'])
        result = self.make_analyzer(backend).generate_interview_questions("resume", "Backend Engineer", ["APIs"])
        self.assertEqual(result["questions"][0]["question"], "Why Python?")
        sent = backend.prompts[0]
        self.assertIn("Backend Engineer", sent["prompt"])
        self.assertIn("Focus areas: APIs", sent["prompt"])
        self.assertEqual(sent["temperature"], 0.5)

    def test_compare_resumes_truncates_each_candidate(self):
        backend = FakeBackend(['{"ranking": []}'])
        resumes = [("Ann", "a" * 100), ("Bob", "b" * 100)]
        result = self.make_analyzer(backend).compare_resumes(resumes, JobRequirements(["Go"]))
        self.assertEqual(result, {"ranking": []})
        prompt = backend.prompts[0]["prompt"]
        self.assertIn("CANDIDATE 1:\nName: Ann", prompt)
        self.assertIn("CANDIDATE 2:\nName: Bob", prompt)
        self.assertIn("a" * 30, prompt)
        self.assertNotIn("a" * 31, prompt)

    def test_ats_and_job_description(self):
        backend = FakeBackend(['{"atsScore": 72}', '{"title": "Data Engineer"}'])
        analyzer = self.make_analyzer(backend)
        self.assertEqual(analyzer.analyze_ats_optimization("resume", "We need Spark")["atsScore"], 72)
        self.assertEqual(analyzer.generate_job_description({"title": "Data Engineer"})["title"], "Data Engineer")
        self.assertIn("We need Spark", backend.prompts[0]["prompt"])
        self.assertEqual(backend.prompts[1]["temperature"], 0.7)

    def test_unparsable_reply_for_auxiliary_prompts(self):
        backend = FakeBackend(["nope"])
        with self.assertRaises(AIResponseError):
            self.make_analyzer(backend).analyze_ats_optimization("resume", "jd")


class OpenAIBackendTests(unittest.TestCase):
    def test_generate_requests_json_object(self):
        client = MagicMock()
        client.chat.completions.create.return_value.choices = [MagicMock()]
        client.chat.completions.create.return_value.choices[0].message.content = '{"ok": true}'
        backend = OpenAIBackend(client, "gpt-4o-mini", temperature=0.3, max_tokens=500)

        self.assertEqual(backend.generate("prompt", system="persona"), '{"ok": true}')

        kwargs = client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-4o-mini")
        self.assertEqual(kwargs["messages"][0], {"role": "system", "content": "persona"})
        self.assertEqual(kwargs["messages"][1], {"role": "user", "content": "prompt"})
        self.assertEqual(kwargs["temperature"], 0.3)
        self.assertEqual(kwargs["response_format"], {"type": "json_object"})

    def test_from_settings_without_key(self):
        settings = dataclasses.replace(load_settings(), api_key=None)
        self.assertIsNone(OpenAIBackend.from_settings(settings))


class AIAvailabilityTests(unittest.TestCase):
    def test_placeholder_and_missing_keys(self):
        base = load_settings()
        self.assertFalse(AIAvailability.from_settings(dataclasses.replace(base, api_key=None)))
        self.assertFalse(AIAvailability.from_settings(dataclasses.replace(base, api_key="your-api-key")))
        self.assertTrue(AIAvailability.from_settings(dataclasses.replace(base, api_key="sk-live-123")))


if __name__ == "__main__":
    unittest.main()
