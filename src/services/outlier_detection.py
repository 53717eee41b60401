"""IQR outlier detection for marketplace prices."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Generic, TypeVar

from src.utils.money import ZERO, round_money, to_decimal

T = TypeVar("T")

DEFAULT_MULTIPLIER = Decimal("1.5")
DEFAULT_MIN_DATASET_SIZE = 4


@dataclass(frozen=True)
class IQRResult:
    """Quartiles and fences of a dataset, rounded to cents."""

    q1: Decimal
    q3: Decimal
    iqr: Decimal
    lower_bound: Decimal
    upper_bound: Decimal
    median: Decimal


@dataclass(frozen=True)
class OutlierDetectionResult(Generic[T]):
    outliers: list[T] = field(default_factory=list)
    normal_values: list[T] = field(default_factory=list)
    stats: IQRResult | None = None


def _percentile(sorted_data: Sequence[Decimal], percentile: int) -> Decimal:
    """Percentile by rank p * (n + 1) with linear interpolation, clamped to the ends."""
    if not sorted_data:
        raise ValueError("Cannot calculate percentile of empty dataset")
    if len(sorted_data) == 1:
        return sorted_data[0]

    position = Decimal(percentile) / 100 * (len(sorted_data) + 1) - 1
    if position <= 0:
        return sorted_data[0]
    if position >= len(sorted_data) - 1:
        return sorted_data[-1]

    lower_index = int(position)
    fraction = position - lower_index
    lower = sorted_data[lower_index]
    upper = sorted_data[lower_index + 1]
    return lower + fraction * (upper - lower)


def calculate_iqr(
    data: Sequence[Decimal | float | int],
    multiplier: Decimal = DEFAULT_MULTIPLIER,
    min_dataset_size: int = DEFAULT_MIN_DATASET_SIZE,
) -> IQRResult:
    """
    Calculate quartiles and outlier fences.

    Raises:
        ValueError: If the dataset is empty or smaller than min_dataset_size
    """
    if not data:
        raise ValueError("Cannot calculate IQR for empty dataset")
    if len(data) < min_dataset_size:
        raise ValueError(
            f"Dataset too small for IQR calculation ({len(data)} < {min_dataset_size})"
        )

    values = sorted(to_decimal(v) for v in data)
    q1 = _percentile(values, 25)
    q3 = _percentile(values, 75)
    iqr = q3 - q1

    return IQRResult(
        q1=round_money(q1),
        q3=round_money(q3),
        iqr=round_money(iqr),
        lower_bound=round_money(q1 - multiplier * iqr),
        upper_bound=round_money(q3 + multiplier * iqr),
        median=round_money(_percentile(values, 50)),
    )


def detect_outliers_by(
    items: Sequence[T],
    extract_value: Callable[[T], Decimal],
    multiplier: Decimal = DEFAULT_MULTIPLIER,
    min_dataset_size: int = DEFAULT_MIN_DATASET_SIZE,
) -> OutlierDetectionResult[T]:
    """
    Split items into outliers and normal values by a numeric key.

    Datasets smaller than min_dataset_size are too small to judge and are
    returned as entirely normal. Input order is preserved in both lists.
    """
    if not items:
        return OutlierDetectionResult()

    values = [to_decimal(extract_value(item)) for item in items]
    if len(items) < min_dataset_size:
        low, high = min(values), max(values)
        stats = IQRResult(
            q1=low, q3=high, iqr=ZERO, lower_bound=low, upper_bound=high, median=values[0]
        )
        return OutlierDetectionResult(normal_values=list(items), stats=stats)

    stats = calculate_iqr(values, multiplier, min_dataset_size)
    outliers: list[T] = []
    normal: list[T] = []
    for item, value in zip(items, values, strict=True):
        if value < stats.lower_bound or value > stats.upper_bound:
            outliers.append(item)
        else:
            normal.append(item)

    return OutlierDetectionResult(outliers=outliers, normal_values=normal, stats=stats)


def detect_outliers(
    data: Sequence[Decimal | float | int],
    multiplier: Decimal = DEFAULT_MULTIPLIER,
    min_dataset_size: int = DEFAULT_MIN_DATASET_SIZE,
) -> OutlierDetectionResult[Decimal]:
    """Detect outliers in a plain numeric dataset."""
    return detect_outliers_by(
        [to_decimal(v) for v in data], lambda v: v, multiplier, min_dataset_size
    )
