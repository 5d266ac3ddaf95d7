"""
Mock profile "scraper".

No site is contacted: profiles are generated at random from the keywords,
shaped like LinkedIn or Naukri search results.
"""
import logging
import random
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from errors import ValidationError

logger = logging.getLogger("alumni.scraper")

SOURCES = ("linkedin", "naukri")
DEFAULT_LIMIT = 5
MAX_LIMIT = 20

DEPARTMENTS = ["Computer Science", "Engineering", "Business", "Arts", "Science", "Medicine", "Law"]
YEAR_RE = re.compile(r"\b(?:19|20)\d{2}\b")

PROFILES = {
    "linkedin": {
        "label": "LinkedIn",
        "first_names": ["Alex", "Jamie", "Jordan", "Taylor", "Morgan", "Casey", "Riley", "Avery", "Quinn",
                        "Skyler", "Rohan", "Priya", "Arjun", "Neha"],
        "last_names": ["Smith", "Johnson", "Williams", "Brown", "Jones", "Miller", "Davis", "Garcia",
                       "Rodriguez", "Wilson", "Patel", "Sharma", "Kumar", "Singh"],
        "domains": ["gmail.com", "outlook.com", "yahoo.com", "hotmail.com"],
        "college": "University",
        "tech_degrees": ["B.Tech", "M.Tech", "B.Sc", "M.Sc"],
        "other_degrees": ["BBA", "MBA", "B.A", "M.A", "B.Sc", "M.Sc"],
        "tech_skills": ["JavaScript", "Python", "React", "Node.js", "AWS", "Machine Learning", "Data Science"],
        "tech_roles": ["Software Engineer", "Full Stack Developer", "Data Scientist", "Product Manager",
                       "DevOps Engineer"],
        "companies": ["Google", "Microsoft", "Amazon", "Meta", "Apple", "Netflix", "Tesla", "IBM", "Oracle",
                      "Salesforce"],
        "locations": ["San Francisco", "New York", "Seattle", "Austin", "Boston", "Chicago", "Los Angeles",
                      "London", "Berlin", "Toronto"],
        "profile_field": "linkedInProfile",
        "profile_url": "https://linkedin.com/in/{first}-{last}-{n}",
    },
    "naukri": {
        "label": "Naukri",
        "first_names": ["Aarav", "Vivaan", "Aditya", "Vihaan", "Arjun", "Reyansh", "Ayaan", "Ananya", "Diya",
                        "Aditi", "Myra", "Aadhya", "Avni", "Riya"],
        "last_names": ["Sharma", "Patel", "Verma", "Gupta", "Singh", "Kumar", "Joshi", "Rao", "Reddy", "Nair",
                       "Iyer", "Mehta", "Malhotra", "Agarwal"],
        "domains": ["gmail.com", "yahoo.com", "hotmail.com", "rediffmail.com"],
        "college": "Institute of Technology",
        "tech_degrees": ["B.Tech", "M.Tech", "B.E", "M.E"],
        "other_degrees": ["BBA", "MBA", "B.Com", "M.Com", "B.Sc", "M.Sc"],
        "tech_skills": ["Java", "Python", "Angular", "React", "Node.js", "AWS", "DevOps", "Cloud Computing"],
        "tech_roles": ["Software Engineer", "Full Stack Developer", "Data Scientist", "DevOps Engineer",
                       "Technical Lead"],
        "companies": ["TCS", "Infosys", "Wipro", "HCL", "Tech Mahindra", "Cognizant", "Accenture", "Capgemini",
                      "IBM India", "Mindtree"],
        "locations": ["Bangalore", "Hyderabad", "Chennai", "Pune", "Mumbai", "Delhi NCR", "Kolkata", "Noida",
                      "Gurgaon", "Ahmedabad"],
        "profile_field": "naukriProfile",
        "profile_url": "https://naukri.com/profile/{first}-{last}-{n}",
    },
}

BUSINESS_SKILLS = ["Marketing", "Finance", "Project Management", "Leadership", "Strategy", "Sales"]
GENERAL_SKILLS = ["Research", "Analysis", "Communication", "Problem Solving", "Critical Thinking"]
OTHER_ROLES = ["Marketing Specialist", "Business Analyst", "Project Manager", "HR Manager", "Operations Manager"]


def process_keywords(keywords: Any) -> List[str]:
    if isinstance(keywords, str):
        processed = [k for k in re.split(r"[,\s]+", keywords) if k.strip()]
    elif isinstance(keywords, list):
        processed = [k.strip() for k in keywords if isinstance(k, str) and k.strip()]
    else:
        raise ValidationError("Keywords must be a string or an array of strings.")
    if not processed:
        raise ValidationError("Please provide at least one valid keyword.")
    return processed


def clamp_limit(limit: Any) -> int:
    try:
        value = int(limit)
    except (TypeError, ValueError, OverflowError):
        value = DEFAULT_LIMIT
    if value == 0:
        value = DEFAULT_LIMIT
    return min(max(value, 1), MAX_LIMIT)


def normalize_source(source: Any) -> str:
    if not isinstance(source, str) or source.lower() not in SOURCES:
        raise ValidationError('Source must be either "linkedin" or "naukri"')
    return source.lower()


def _college(keywords: List[str], default: str) -> str:
    for k in keywords:
        lowered = k.lower()
        if "college" in lowered or "university" in lowered or "institute" in lowered:
            return k
    return default


def _department(keyword_str: str) -> str:
    for dept in DEPARTMENTS:
        if dept.lower() in keyword_str:
            return dept
    return "Computer Science"


def _batch_year(keyword_str: str) -> Optional[int]:
    match = YEAR_RE.search(keyword_str)
    return int(match.group(0)) if match else None


def generate_profiles(
    source: str,
    keywords: List[str],
    limit: int,
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    rng = rng or random.Random()
    site = PROFILES[source]
    keyword_str = " ".join(keywords).lower()
    college = _college(keywords, site["college"])
    department = _department(keyword_str)
    batch_year = _batch_year(keyword_str)
    technical = "computer" in department.lower() or "engineering" in department.lower()
    current_year = datetime.now().year

    if technical:
        skills = site["tech_skills"]
    elif "business" in department.lower():
        skills = BUSINESS_SKILLS
    else:
        skills = GENERAL_SKILLS

    profiles = []
    for _ in range(limit):
        first = rng.choice(site["first_names"])
        last = rng.choice(site["last_names"])
        year = batch_year or current_year - rng.randint(1, 10)
        picked = list(dict.fromkeys(rng.choice(skills) for _ in range(3)))

        if source == "linkedin":
            phone = f"+1-{rng.randint(100, 999)}-{rng.randint(100, 999)}-{rng.randint(1000, 9999)}"
            bio = (f"{department} graduate from {college} (Class of {year}). Skilled in {', '.join(picked)}. "
                   f"Passionate about innovation and problem-solving.")
        else:
            phone = f"+91-{rng.randint(100, 999)}-{rng.randint(1000, 9999)}-{rng.randint(100, 999)}"
            experience = rng.randint(1, 10)
            bio = (f"{department} graduate from {college} ({year}). {experience}+ years of experience. "
                   f"Skilled in {', '.join(picked)}. Looking for challenging opportunities.")

        profiles.append({
            "name": f"{first} {last}",
            "email": f"{first.lower()}.{last.lower()}{rng.randint(0, 99)}@{rng.choice(site['domains'])}",
            "phone": phone,
            "batch": year,
            "degree": rng.choice(site["tech_degrees"] if "Computer" in department else site["other_degrees"]),
            "designation": rng.choice(site["tech_roles"] if "Computer" in department else OTHER_ROLES),
            "company": rng.choice(site["companies"]),
            "location": rng.choice(site["locations"]),
            "bio": bio,
            "image": f"https://ui-avatars.com/api/?name={first}+{last}&background=random&size=200",
            site["profile_field"]: site["profile_url"].format(
                first=first.lower(), last=last.lower(), n=rng.randint(0, 9999)
            ),
            "source": site["label"],
        })
    return profiles


def scrape(keywords: Any, source: Any, limit: Any = DEFAULT_LIMIT, rng: Optional[random.Random] = None) -> dict:
    if not keywords or not source:
        raise ValidationError("Keywords and source are required")
    source = normalize_source(source)
    processed = process_keywords(keywords)
    processed_limit = clamp_limit(limit)
    profiles = generate_profiles(source, processed, processed_limit, rng)
    logger.info("Generated %d %s profiles for keywords: %s", len(profiles), source, ", ".join(processed))
    return {
        "profiles": profiles,
        "meta": {
            "source": source,
            "keywords": processed,
            "limit": processed_limit,
            "count": len(profiles),
        },
    }
