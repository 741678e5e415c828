from typing import Dict, Optional, Tuple

from resumezap.schemas import AIRequest

ATTACHED_RESUME = "(The candidate's resume is attached above as a document.)"

RESUME_ANALYSIS_SYSTEM_PROMPT = """You are an expert resume optimization specialist and ATS (Applicant Tracking System) consultant. Your task is to analyze resumes against job postings and provide detailed optimization recommendations.

You must respond with a valid JSON object containing the following structure:
{
  "tailoredResume": "string - the optimized resume content",
  "matchScore": number - overall match percentage (0-100),
  "matchBreakdown": {
    "keywords": number - keyword match percentage (0-100),
    "skills": number - skills match percentage (0-100),
    "experience": number - experience match percentage (0-100),
    "formatting": number - ATS formatting score (0-100)
  },
  "changes": [
    {
      "section": "string - section name",
      "original": "string - original text",
      "improved": "string - improved text",
      "reason": "string - explanation for change"
    }
  ],
  "keywordMatches": {
    "found": ["array of keywords found in resume"],
    "missing": ["array of important keywords missing"],
    "suggestions": ["array of keyword optimization suggestions"]
  },
  "atsOptimizations": ["array of ATS optimization tips"]
}

HARD RULES:
- Do NOT add new employers, job titles, employment dates, degrees, or certifications.
- Do NOT invent numbers/metrics.
- Output the JSON object only. No markdown, no commentary."""

COVER_LETTER_SYSTEM_PROMPT = """You are an expert cover letter writer specializing in creating compelling, personalized cover letters that get results. Your task is to generate cover letters that are tailored to specific job postings and company cultures.

You must respond with a valid JSON object containing the following structure:
{
  "coverLetter": "string - the complete cover letter text",
  "customizations": ["array of specific customizations made for this role"],
  "keyStrengths": ["array of key strengths highlighted"],
  "callToAction": "string - the specific call to action used"
}

Output the JSON object only. No markdown, no commentary."""

SKILL_GAP_SYSTEM_PROMPT = """You are an expert career development consultant and skills assessment specialist. Your task is to analyze skill gaps between a candidate's current abilities and job requirements, then provide comprehensive learning recommendations.

You must respond with a valid JSON object containing the following structure:
{
  "skillGapAnalysis": {
    "critical": [
      {
        "skill": "string - skill name",
        "currentLevel": "string - current proficiency level",
        "requiredLevel": "string - required proficiency level",
        "gap": "string - description of the gap"
      }
    ],
    "important": [/* same structure as critical */],
    "niceToHave": [/* same structure as critical */]
  },
  "learningRecommendations": [
    {
      "skill": "string - skill name",
      "priority": "string - Critical/Important/Nice-to-Have",
      "timeInvestment": "string - estimated time to learn",
      "courses": [
        {
          "platform": "string - learning platform",
          "courseName": "string - course title",
          "cost": "string - course cost",
          "duration": "string - course duration",
          "difficulty": "string - Beginner/Intermediate/Advanced"
        }
      ],
      "freeResources": [
        {
          "type": "string - resource type",
          "resource": "string - resource name",
          "description": "string - resource description"
        }
      ],
      "certifications": [
        {
          "name": "string - certification name",
          "provider": "string - certification provider",
          "timeToComplete": "string - time estimate",
          "cost": "string - certification cost"
        }
      ],
      "practicalApplication": "string - how to apply this skill practically"
    }
  ],
  "developmentRoadmap": {
    "phase1": {"duration": "string", "focus": "string", "milestones": ["array of milestones"]},
    "phase2": {"duration": "string", "focus": "string", "milestones": ["array of milestones"]},
    "phase3": {"duration": "string", "focus": "string", "milestones": ["array of milestones"]}
  },
  "skillsAlreadyStrong": ["array of skills the candidate already possesses"]
}

Output the JSON object only. No markdown, no commentary."""

SYSTEM_PROMPTS: Dict[str, str] = {
    "resume_analysis": RESUME_ANALYSIS_SYSTEM_PROMPT,
    "cover_letter": COVER_LETTER_SYSTEM_PROMPT,
    "skill_gap": SKILL_GAP_SYSTEM_PROMPT,
}

TONE_INSTRUCTIONS: Dict[str, str] = {
    "professional": "Use a formal, business-appropriate tone that demonstrates professionalism and competence.",
    "enthusiastic": "Use an energetic, passionate tone that shows genuine excitement for the role and company.",
    "concise": "Use a brief, direct tone that gets straight to the point while maintaining professionalism.",
}


def build_resume_analysis_prompt(resume_text: str, job_posting: str) -> str:
    return f"""Please analyze this resume against the job posting and provide optimization recommendations.

RESUME:
{resume_text}

JOB POSTING:
{job_posting}

Provide a comprehensive analysis with specific, actionable improvements to increase ATS compatibility and match score."""


def build_cover_letter_prompt(req: AIRequest, resume_text: str) -> str:
    tone = req.tone or "professional"
    lines = [
        f"Generate a {tone} cover letter for this job application.",
        "",
        f"COMPANY: {req.company_name}",
        f"POSITION: {req.job_title}",
    ]
    if req.hiring_manager:
        lines.append(f"HIRING MANAGER: {req.hiring_manager}")
    lines += ["", "JOB POSTING:", req.job_posting or "", "", "APPLICANT'S RESUME:", resume_text, ""]
    if req.personal_experience:
        lines += [f"PERSONAL HIGHLIGHTS: {req.personal_experience}", ""]
    lines += [
        f"TONE: {TONE_INSTRUCTIONS[tone]}",
        "",
        "Create a compelling cover letter that demonstrates clear value proposition and genuine interest in the role.",
    ]
    return "\n".join(lines)


def build_skill_gap_prompt(resume_text: str, job_posting: str) -> str:
    return f"""Analyze the skill gaps between this candidate's resume and the job requirements, then provide a comprehensive learning plan.

CANDIDATE'S RESUME:
{resume_text}

JOB REQUIREMENTS:
{job_posting}

Provide specific, actionable learning recommendations with realistic timelines and practical resources."""


def build_prompts(req: AIRequest, resume_text: Optional[str] = None) -> Tuple[str, str]:
    """
    Return (system, user) prompts for a validated request.

    `resume_text` is None when the resume travels as an attached document.
    """
    resume = resume_text if resume_text is not None else ATTACHED_RESUME
    if req.type == "resume_analysis":
        user = build_resume_analysis_prompt(resume, req.job_posting)
    elif req.type == "cover_letter":
        user = build_cover_letter_prompt(req, resume)
    elif req.type == "skill_gap":
        user = build_skill_gap_prompt(resume, req.job_posting)
    else:
        raise ValueError(f"unknown request type: {req.type}")
    return SYSTEM_PROMPTS[req.type], user
