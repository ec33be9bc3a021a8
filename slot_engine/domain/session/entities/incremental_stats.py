# slot_engine/domain/session/entities/incremental_stats.py
from dataclasses import dataclass
import math
from typing import Any, Dict, Optional


@dataclass
class IncrementalStats:
    """
    用于增量计算统计量的类，基于Welford算法。
    允许在不保留完整数据的情况下计算准确的均值和方差，并支持分片合并。
    """
    count: int = 0
    mean: float = 0.0
    M2: float = 0.0  # 二阶中心矩之和

    min_value: Optional[float] = None
    max_value: Optional[float] = None

    def update(self, new_value: float) -> None:
        """更新统计量"""
        if self.min_value is None or new_value < self.min_value:
            self.min_value = new_value
        if self.max_value is None or new_value > self.max_value:
            self.max_value = new_value

        self.count += 1
        delta = new_value - self.mean
        self.mean += delta / self.count
        self.M2 += delta * (new_value - self.mean)

    def get_variance(self, population: bool = False) -> float:
        """
        获取方差
        population=True: 总体方差 (除以n)
        population=False: 样本方差 (除以n-1)
        """
        if self.count < 2:
            return 0.0
        return self.M2 / (self.count if population else self.count - 1)

    def get_std_dev(self, population: bool = False) -> float:
        """获取标准差"""
        return math.sqrt(self.get_variance(population))

    def merge(self, other: 'IncrementalStats') -> 'IncrementalStats':
        """
        合并两个增量统计对象（Chan并行算法），结果与合并顺序无关。
        """
        if other.count == 0:
            return IncrementalStats(self.count, self.mean, self.M2, self.min_value, self.max_value)
        if self.count == 0:
            return IncrementalStats(other.count, other.mean, other.M2, other.min_value, other.max_value)

        count = self.count + other.count
        delta = other.mean - self.mean

        return IncrementalStats(
            count=count,
            mean=self.mean + delta * other.count / count,
            M2=self.M2 + other.M2 + delta * delta * self.count * other.count / count,
            min_value=min(self.min_value, other.min_value),
            max_value=max(self.max_value, other.max_value),
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "count": self.count,
            "mean": self.mean,
            "variance": self.get_variance(),
            "std_dev": self.get_std_dev(),
            "min": self.min_value,
            "max": self.max_value,
        }
