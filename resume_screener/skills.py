# skills.py
# Central knowledge base for skill detection.

# The key is the category reported in ResumeAnalysis.skills.categorized.
# The value is the list of lowercase skill tokens looked up by substring in the resume text.
# Order matters: it decides the order skills are reported in, and the "top 3" used for interview questions.

SKILLS_DATABASE = {
    # --- Languages ---
    "programming": [
        "javascript", "python", "java", "c++", "c#", "ruby", "go", "rust", "typescript",
        "php", "swift", "kotlin", "scala", "r", "matlab",
    ],

    # --- Web ---
    "frontend": [
        "react", "vue", "angular", "svelte", "html", "css", "sass", "less", "tailwind",
        "bootstrap", "jquery", "redux", "next.js", "nuxt", "gatsby",
    ],
    "backend": [
        "node.js", "express", "django", "flask", "spring", "laravel", "rails", "asp.net",
        "fastapi", "nestjs", "graphql", "rest api",
    ],

    # --- Data & infrastructure ---
    "database": [
        "mongodb", "postgresql", "mysql", "oracle", "redis", "elasticsearch", "cassandra",
        "dynamodb", "firebase", "sqlite",
    ],
    "cloud": [
        "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "jenkins", "ci/cd",
        "devops", "linux", "nginx",
    ],
    "ml_ai": [
        "machine learning", "deep learning", "tensorflow", "pytorch", "keras", "scikit-learn",
        "nlp", "computer vision", "data science",
    ],

    # --- Core soft skills ---
    "soft_skills": [
        "leadership", "communication", "teamwork", "problem-solving", "analytical",
        "creative", "management", "agile", "scrum",
    ],
}

# Fragments used to bucket AI-reported frameworks.
FRONTEND_FRAMEWORK_HINTS = ("react", "vue", "angular", "svelte", "next", "nuxt", "gatsby", "jquery", "redux")

ML_HINTS = ("tensorflow", "pytorch", "keras", "scikit", "sklearn", "machine learning", "deep learning", "nlp", "llm")

SKILL_RESOURCES = {
    "javascript": ["FreeCodeCamp", "JavaScript.info", "MDN Web Docs"],
    "python": ["Python.org", "Real Python", "Codecademy"],
    "react": ["React.dev", "Scrimba", "Egghead.io"],
    "node.js": ["Node.js Docs", "NodeSchool", "The Odin Project"],
    "aws": ["AWS Training", "A Cloud Guru", "Tutorials Dojo"],
    "docker": ["Docker Docs", "Play with Docker", "KodeKloud"],
    "kubernetes": ["Kubernetes.io", "KodeKloud", "CNCF Training"],
    "machine learning": ["Coursera ML", "Fast.ai", "Kaggle"],
}

DEFAULT_SKILL_RESOURCES = ["Udemy", "Coursera", "LinkedIn Learning"]
