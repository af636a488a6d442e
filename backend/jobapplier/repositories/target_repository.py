"""
JD Repository
提供 targets 表的增删改查
"""

from jobapplier.models.target import Target

from .base import SoftDeleteRepository


class TargetRepository(SoftDeleteRepository[Target]):
    """
    JD 数据访问对象
    targets 没有业务唯一键，add_or_get_existing 退化为普通插入
    """

    model = Target
