import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_screener.models import DegreeLevel, ExperienceLevel, JobRequirements  # noqa: E402
from resume_screener.transformer import (  # noqa: E402
    classify_skill,
    map_experience_level,
    normalize_severity,
    transform_ai_response,
)


FULL_PAYLOAD = {
    "contact": {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "555-123-4567",
        "location": "Austin, TX",
        "linkedin": "https://linkedin.com/in/janedoe",
        "github": "https://github.com/janedoe",
    },
    "summary": "Backend engineer focused on APIs.",
    "skills": {
        "programming": ["Python", "Go", "python"],
        "frameworks": ["React", "Django", "Next.js", "TensorFlow"],
        "databases": ["PostgreSQL"],
        "cloud": ["AWS"],
        "soft": ["Mentoring"],
        "technical": ["docker", "Kubernetes", "Photoshop"],
        "other": ["PyTorch", None, 42],
    },
    "experience": {
        "totalYears": 6,
        "level": "Senior",
        "positions": [
            {
                "title": "Backend Engineer",
                "company": "Acme",
                "startDate": "2019",
                "endDate": "Present",
                "responsibilities": ["Built billing APIs"],
            }
        ],
    },
    "education": {
        "degrees": [{"degree": "Master of Science", "field": "Computer Science", "institution": "UT Austin"}],
        "certifications": [{"name": "AWS Certified Developer"}, "CKA"],
        "highestDegree": "Master of Science",
    },
    "projects": [{"name": "Billing engine"}],
    "achievements": ["Cut latency by 40%"],
    "analysis": {
        "strengths": ["APIs"],
        "weaknesses": ["Limited frontend depth"],
        "redFlags": [
            {"issue": "Short tenure at last job", "severity": "HIGH"},
            {"issue": "Unexplained gap", "severity": "critical"},
        ],
    },
    "matchScore": {
        "overall": 90,
        "breakdown": {"skills": 88, "experience": "95"},
        "matchedSkills": ["Python", "AWS"],
        "missingSkills": ["Kotlin"],
        "underqualified": False,
        "recommendation": "Reject",
    },
    "interviewQuestions": [
        {"category": "Technical", "question": "How do you design idempotent APIs?", "purpose": "API design"},
        {"category": "Technical", "question": ""},
    ],
    "overallAssessment": "Strong fit.",
}


class TransformAIResponseTests(unittest.TestCase):
    def test_empty_payload_gets_defaults(self):
        analysis = transform_ai_response({})
        self.assertTrue(analysis.ai_powered)
        self.assertEqual(analysis.skills.total_skills, 0)
        self.assertEqual(analysis.experience.total_years, 0)
        self.assertEqual(analysis.experience.experience_level, ExperienceLevel.ENTRY)
        self.assertEqual(analysis.education.highest_degree, "Not specified")
        self.assertEqual(analysis.education.score, 20)
        self.assertEqual(analysis.sentiment.professionalism_score, 50)
        self.assertEqual([flag.type for flag in analysis.suggestions], ["missing_linkedin", "no_projects"])
        self.assertIsNone(analysis.match_score)
        self.assertEqual(analysis.red_flags, [])

    def test_garbage_payloads_never_raise(self):
        for payload in (None, "not json", [1, 2], {"skills": "python", "experience": {"totalYears": "lots"}}):
            with self.subTest(payload=payload):
                analysis = transform_ai_response(payload, "some text", JobRequirements(["python"]))
                self.assertTrue(analysis.ai_powered)
                self.assertEqual(analysis.match_score.overall_score, 0)
                self.assertEqual(analysis.match_score.recommendation.status, "Not Recommended")

    def test_skill_taxonomy_is_reclassified(self):
        categorized = transform_ai_response(FULL_PAYLOAD).skills.categorized
        self.assertEqual(categorized["programming"], ["Python", "Go"])
        self.assertEqual(categorized["frontend"], ["React", "Next.js"])
        self.assertEqual(categorized["backend"], ["Django"])
        self.assertEqual(categorized["ml_ai"], ["TensorFlow", "PyTorch"])
        self.assertEqual(categorized["database"], ["PostgreSQL"])
        self.assertEqual(categorized["cloud"], ["AWS", "docker", "Kubernetes"])
        self.assertEqual(categorized["soft_skills"], ["Mentoring"])
        self.assertEqual(categorized["other"], ["Photoshop"])

    def test_total_skills_matches_flattened_length(self):
        skills = transform_ai_response(FULL_PAYLOAD).skills
        self.assertEqual(skills.total_skills, len(skills.flatten()))
        self.assertEqual(skills.to_dict()["totalSkills"], 13)

    def test_experience_and_education(self):
        analysis = transform_ai_response(FULL_PAYLOAD)
        experience = analysis.experience
        self.assertEqual(experience.total_years, 6)
        self.assertEqual(experience.experience_level, ExperienceLevel.SENIOR)
        self.assertEqual(experience.job_titles, ["Backend Engineer"])
        self.assertEqual(experience.positions[0].duration, "2019 - Present")
        self.assertEqual(experience.positions[0].summary, "Built billing APIs")

        education = analysis.education
        self.assertEqual(education.highest_degree, "Masters")
        self.assertEqual(education.highest_level, DegreeLevel.MASTERS)
        self.assertEqual(education.score, 85)
        self.assertEqual(education.universities, ["UT Austin"])
        self.assertEqual(education.certifications, ["AWS Certified Developer", "CKA"])

    def test_degree_abbreviations_are_recognized(self):
        cases = [
            ("B.Tech", DegreeLevel.BACHELORS, 70),
            ("B.S.", DegreeLevel.BACHELORS, 70),
            ("BSc", DegreeLevel.BACHELORS, 70),
            ("M.S.", DegreeLevel.MASTERS, 85),
            ("M.Tech", DegreeLevel.MASTERS, 85),
            ("MSc", DegreeLevel.MASTERS, 85),
        ]
        for label, level, score in cases:
            with self.subTest(label=label):
                education = transform_ai_response(
                    {"education": {"degrees": [{"degree": label}], "highestDegree": label}}
                ).education
                self.assertEqual(education.highest_level, level)
                self.assertEqual(education.highest_degree, level.label)
                self.assertEqual(education.degrees, [level.label])
                self.assertEqual(education.score, score)

    def test_degree_without_highest_uses_best_listed(self):
        education = transform_ai_response(
            {"education": {"degrees": [{"degree": "BSc Physics"}, {"degree": "MBA"}]}}
        ).education
        self.assertEqual(education.highest_level, DegreeLevel.MASTERS)

    def test_level_derived_from_years_when_missing(self):
        self.assertEqual(
            transform_ai_response({"experience": {"totalYears": 3}}).experience.experience_level,
            ExperienceLevel.MID,
        )
        self.assertEqual(
            transform_ai_response({"experience": {"totalYears": 10, "level": "unknown"}}).experience.experience_level,
            ExperienceLevel.LEAD,
        )

    def test_professionalism_flags_and_suggestions(self):
        analysis = transform_ai_response(FULL_PAYLOAD)
        # 50 + 40 (positions, degrees, achievements, projects) + 10 (links) - 2 * 5 (red flags)
        self.assertEqual(analysis.sentiment.professionalism_score, 90)
        self.assertEqual(
            [(flag.message, flag.severity) for flag in analysis.red_flags],
            [("Short tenure at last job", "high"), ("Unexplained gap", "medium")],
        )
        self.assertEqual([flag.type for flag in analysis.warnings], ["weakness"])
        self.assertEqual([(flag.type, flag.severity) for flag in analysis.suggestions], [("skill_gap", "medium")])

    def test_professionalism_is_clamped(self):
        flags = [{"issue": f"issue {index}", "severity": "low"} for index in range(20)]
        analysis = transform_ai_response({"analysis": {"redFlags": flags}})
        self.assertEqual(analysis.sentiment.professionalism_score, 0)

    def test_match_score_recommendation_is_recomputed(self):
        job = JobRequirements(["Python", "AWS", "Kotlin"], education=DegreeLevel.BACHELORS)
        match = transform_ai_response(FULL_PAYLOAD, "resume text", job).match_score
        self.assertEqual(match.overall_score, 90)
        self.assertEqual(match.recommendation.status, "Highly Recommended")
        self.assertEqual(match.match_details.skills_match, ["Python", "AWS"])
        self.assertEqual(match.match_details.missing_skills, ["Kotlin"])
        self.assertEqual(match.match_details.skill_match_percentage, 67)
        self.assertTrue(match.match_details.experience_match)
        self.assertTrue(match.match_details.education_match)
        self.assertEqual(match.breakdown, {"skills": 88.0, "experience": 95.0})

    def test_match_score_boundaries(self):
        job = JobRequirements([])
        self.assertEqual(
            transform_ai_response({"matchScore": {"overall": "84.4"}}, job_requirements=job).match_score.recommendation.status,
            "Recommended",
        )
        self.assertEqual(
            transform_ai_response({"matchScore": {"overall": 150}}, job_requirements=job).match_score.overall_score,
            100,
        )

    def test_skill_match_falls_back_to_local_comparison(self):
        payload = {"skills": {"programming": ["Python"]}, "matchScore": {"overall": 60}}
        match = transform_ai_response(payload, job_requirements=JobRequirements(["python", "aws"])).match_score
        self.assertEqual(match.match_details.skills_match, ["python"])
        self.assertEqual(match.match_details.missing_skills, ["aws"])
        self.assertEqual(match.match_details.skill_match_percentage, 50)

    def test_questions_summary_and_word_count(self):
        analysis = transform_ai_response(FULL_PAYLOAD, "one two three")
        self.assertEqual(len(analysis.interview_questions), 1)
        self.assertEqual(analysis.interview_questions[0].focus, "API design")
        self.assertEqual(analysis.summary, "Backend engineer focused on APIs.")
        self.assertEqual(analysis.overall_assessment, "Strong fit.")
        self.assertEqual(analysis.word_count, 3)
        self.assertEqual(analysis.contact.github, "https://github.com/janedoe")


class HelperTests(unittest.TestCase):
    def test_classify_skill(self):
        self.assertEqual(classify_skill("MongoDB"), "database")
        self.assertEqual(classify_skill("scikit-learn pipelines"), "ml_ai")
        self.assertEqual(classify_skill("Svelte Kit"), "frontend")
        self.assertEqual(classify_skill("Figma"), "other")

    def test_map_experience_level(self):
        self.assertEqual(map_experience_level("Lead/Staff"), ExperienceLevel.LEAD)
        self.assertEqual(map_experience_level("Executive"), ExperienceLevel.PRINCIPAL)
        self.assertEqual(map_experience_level("Mid-Level"), ExperienceLevel.MID)
        self.assertIsNone(map_experience_level(None))
        self.assertIsNone(map_experience_level("  "))

    def test_normalize_severity(self):
        self.assertEqual(normalize_severity(" Low "), "low")
        self.assertEqual(normalize_severity(None), "medium")


if __name__ == "__main__":
    unittest.main()
