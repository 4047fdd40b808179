import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_screener.errors import ValidationError  # noqa: E402
from resume_screener.models import (  # noqa: E402
    NO_DEGREE,
    ContactInfo,
    DegreeLevel,
    Education,
    Experience,
    ExperienceLevel,
    JobRequirements,
    ResumeAnalysis,
    Sentiment,
    SkillSet,
    categorize_experience_level,
    clamp_score,
)


class ExperienceLevelTests(unittest.TestCase):
    def test_breakpoints(self):
        expected = {
            -1: ExperienceLevel.ENTRY,
            0: ExperienceLevel.ENTRY,
            1: ExperienceLevel.JUNIOR,
            2: ExperienceLevel.JUNIOR,
            2.5: ExperienceLevel.MID,
            5: ExperienceLevel.MID,
            6: ExperienceLevel.SENIOR,
            8: ExperienceLevel.SENIOR,
            9: ExperienceLevel.LEAD,
            12: ExperienceLevel.LEAD,
            13: ExperienceLevel.PRINCIPAL,
            40: ExperienceLevel.PRINCIPAL,
        }
        for years, level in expected.items():
            with self.subTest(years=years):
                self.assertEqual(categorize_experience_level(years), level)

    def test_monotonic_and_pure(self):
        previous_rank = -1
        for tenths in range(0, 300):
            years = tenths / 10
            level = categorize_experience_level(years)
            self.assertEqual(level, categorize_experience_level(years))
            self.assertGreaterEqual(level.rank, previous_rank)
            previous_rank = level.rank

    def test_labels(self):
        self.assertEqual(ExperienceLevel.MID.value, "Mid-Level")
        self.assertEqual(ExperienceLevel.PRINCIPAL.value, "Principal/Director")


class DegreeLevelTests(unittest.TestCase):
    def test_total_order(self):
        self.assertLess(DegreeLevel.DIPLOMA, DegreeLevel.ASSOCIATE)
        self.assertLess(DegreeLevel.BACHELORS, DegreeLevel.MASTERS)
        self.assertLess(DegreeLevel.MASTERS, DegreeLevel.PHD)
        self.assertEqual(int(DegreeLevel.PHD), 5)

    def test_from_label_is_case_insensitive(self):
        self.assertEqual(DegreeLevel.from_label("phd"), DegreeLevel.PHD)
        self.assertEqual(DegreeLevel.from_label(" Masters "), DegreeLevel.MASTERS)
        self.assertIsNone(DegreeLevel.from_label("Not specified"))
        self.assertIsNone(DegreeLevel.from_label(None))

    def test_education_highest_level(self):
        self.assertEqual(Education(highest_degree="Bachelors").highest_level, DegreeLevel.BACHELORS)
        self.assertIsNone(Education(highest_degree=NO_DEGREE).highest_level)


class JobRequirementsTests(unittest.TestCase):
    def test_camel_case_payload(self):
        job = JobRequirements.from_dict(
            {"skills": ["Python", " AWS "], "minExperience": 2, "maxExperience": 6, "education": "Masters"}
        )
        self.assertEqual(job.skills, ["Python", "AWS"])
        self.assertEqual(job.min_experience, 2)
        self.assertEqual(job.max_experience, 6)
        self.assertEqual(job.education, DegreeLevel.MASTERS)

    def test_snake_case_and_comma_separated_skills(self):
        job = JobRequirements.from_dict({"skills": "python, docker,,", "min_experience": "1"})
        self.assertEqual(job.skills, ["python", "docker"])
        self.assertEqual(job.min_experience, 1.0)

    def test_defaults(self):
        job = JobRequirements.from_dict({})
        self.assertEqual(job.skills, [])
        self.assertEqual(job.min_experience, 0)
        self.assertEqual(job.max_experience, 20)
        self.assertEqual(job.education, DegreeLevel.BACHELORS)

    def test_rejects_malformed_payloads(self):
        bad_payloads = [
            None,
            ["python"],
            {"skills": [1, 2]},
            {"minExperience": -1},
            {"minExperience": "lots"},
            {"minExperience": True},
            {"minExperience": 8, "maxExperience": 3},
            {"education": "Wizard"},
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError):
                    JobRequirements.from_dict(payload)

    def test_to_dict_round_trips_through_from_dict(self):
        job = JobRequirements(["Go"], 1, 4, DegreeLevel.ASSOCIATE)
        self.assertEqual(JobRequirements.from_dict(job.to_dict()), job)


class ResumeAnalysisShapeTests(unittest.TestCase):
    def test_to_dict_reports_total_skills_and_omits_missing_score(self):
        analysis = ResumeAnalysis(
            contact=ContactInfo(name="Jane Doe"),
            skills=SkillSet({"programming": ["python", "go"], "cloud": ["aws"]}),
            experience=Experience(total_years=3, experience_level=ExperienceLevel.MID),
            education=Education(),
            sentiment=Sentiment(),
        )
        payload = analysis.to_dict()
        self.assertEqual(payload["skills"]["totalSkills"], 3)
        self.assertEqual(payload["skills"]["totalSkills"], len(analysis.skills.flatten()))
        self.assertEqual(payload["experience"]["experienceLevel"], "Mid-Level")
        self.assertEqual(payload["education"]["highestDegree"], NO_DEGREE)
        self.assertNotIn("matchScore", payload)
        self.assertFalse(payload["aiPowered"])

    def test_clamp_score(self):
        self.assertEqual(clamp_score(-4), 0)
        self.assertEqual(clamp_score(140), 100)
        self.assertEqual(clamp_score(55.5), 55.5)


if __name__ == "__main__":
    unittest.main()
