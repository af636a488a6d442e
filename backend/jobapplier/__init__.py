"""
jobapplier - 求职材料流水线

CV 导入（去重 + 抽取 + 后台结构化）、JD 提交（文本 / 图片 OCR）、
求职信幂等生成
"""

__version__ = "0.1.0"
