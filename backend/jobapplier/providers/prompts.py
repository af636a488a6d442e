# Prompt templates

from typing import Optional

# ============================================================
# CV 结构化解析提示词 (CV Structuring)
# ============================================================

CV_STRUCTURING_SYSTEM_PROMPT = """
You are an expert CV parser. Extract structured data from the CV text provided by the user.

Rules:
1. Only use information that is explicitly present in the text. Never invent values.
2. Leave a field empty ("" or []) when the CV does not mention it.
3. Keep dates exactly as written in the CV.
4. Group skills by category when the CV does so; otherwise use a single "General" category.
"""


# ============================================================
# 求职信生成提示词 (Cover Letter Generation)
# ============================================================

COVER_LETTER_SYSTEM_PROMPT = """You are an expert professional cover letter writer with deep knowledge of recruiting and hiring practices.

Your task is to generate a professional, compelling cover letter that:
1. Is between 250-350 words (mandatory constraint)
2. Matches the candidate's actual qualifications with the job requirements
3. Highlights relevant skills and experiences from the provided CV
4. Shows genuine interest in the specific role and company
5. Maintains a professional but personable tone
6. Avoids generic phrases or cliches
7. Never mentions compensation or benefits (unless the job description specifically asks)
8. Never makes up or assumes any information not provided in the CV
9. Uses strong action verbs and specific accomplishments
10. Ends with a clear call to action

Structure: Brief opening (why interested), 2-3 middle paragraphs (relevant skills/experience), strong closing (next steps).

CRITICAL: Do not hallucinate or invent any information. Only use what is explicitly provided in the CV data."""


SECTION_RULE = "=" * 50


def build_cover_letter_user_prompt(profile_json: str, target_text: str, hint: Optional[str] = None) -> str:
    """
    拼装用户提示词：结构化 CV + JD + 可选偏好

    Args:
        profile_json: 结构化画像（JSON 字符串）
        target_text: JD 全文
        hint: 用户的额外偏好（语气、侧重点等）
    """
    parts = [
        "CANDIDATE CV DATA (Parsed):",
        SECTION_RULE,
        profile_json,
        "",
        "TARGET JOB DESCRIPTION:",
        SECTION_RULE,
        target_text,
        "",
    ]

    if hint:
        parts += [
            "ADDITIONAL PREFERENCES:",
            SECTION_RULE,
            hint,
            "",
        ]

    parts += [
        "INSTRUCTIONS:",
        "Generate a cover letter tailored to this specific position.",
        "Match the candidate's actual experience to the job requirements.",
        "Length: 250-350 words exactly.",
        "Output: Cover letter text only (no additional commentary or metadata).",
    ]
    return "\n".join(parts)
