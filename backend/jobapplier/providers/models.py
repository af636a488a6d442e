"""
Provider 数据模型 - LLM 结构化输出模式

CV 结构化解析时 LLM 必须返回的结构，确保写入 documents.structured_profile
的 JSON 形状稳定。
"""

from typing import List

from pydantic import BaseModel, Field


class PersonalInfo(BaseModel):
    """个人信息"""
    name: str = Field(default="", description="Full name of the candidate")
    email: str = Field(default="", description="Email address")
    phone: str = Field(default="", description="Phone number")
    location: str = Field(default="", description="City / country")
    summary: str = Field(default="", description="Professional summary, as written in the CV")


class Experience(BaseModel):
    """工作经历"""
    company: str = Field(default="")
    position: str = Field(default="")
    start_date: str = Field(default="", description="Start date exactly as written")
    end_date: str = Field(default="", description="End date exactly as written, or 'Present'")
    description: str = Field(default="")
    responsibilities: List[str] = Field(default_factory=list)


class Education(BaseModel):
    """教育经历"""
    institution: str = Field(default="")
    degree: str = Field(default="")
    field_of_study: str = Field(default="")
    graduation_year: str = Field(default="")


class SkillGroup(BaseModel):
    """技能分组"""
    category: str = Field(default="General")
    items: List[str] = Field(default_factory=list)


class Certification(BaseModel):
    """证书"""
    name: str = Field(default="")
    issuer: str = Field(default="")
    date: str = Field(default="")


class LanguageSkill(BaseModel):
    """语言能力"""
    language: str = Field(default="")
    proficiency: str = Field(default="")


class CVProfile(BaseModel):
    """
    CV 结构化画像 - LLM 结构化输出模式

    所有字段都有默认值：CV 中没有提到的信息保持为空，不允许模型编造。
    """
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    experiences: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    skills: List[SkillGroup] = Field(default_factory=list)
    certifications: List[Certification] = Field(default_factory=list)
    languages: List[LanguageSkill] = Field(default_factory=list)
