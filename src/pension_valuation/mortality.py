"""
pension_valuation/mortality.py - Statutory Mortality Engine

Implements the TM-2020 mortality tables used to price individual-account
pensions (scheduled withdrawal and life annuities).

Mathematical Framework:
- Survivor count: l(x) = 100,000 × ∏_{a=x0}^{x-1} (1 - q_a)
- Survival ratio: tPx = l(x+t) / l(x)
- Curtate life expectancy: e(x) = Σ_{t=1}^{ω-x} ∏_{k=0}^{t-1} (1 - q_{x+k})

Tables (four cohorts, immutable, loaded once per process):
- CB-H-2020: general lives, male, ages 0-110
- B-M-2020: general lives, female, ages 0-110
- I-H-2020: disabled lives, male, ages 18-81
- I-M-2020: disabled lives, female, ages 18-81

Ages outside a table clamp to its boundary. The terminal age carries
q = 1.0, so every survival probability beyond it is exactly zero.

Author: Actuarial Pipeline Project
License: MIT
"""

import numpy as np
from typing import Dict, Mapping, Sequence, Tuple, Union
from types import MappingProxyType
from enum import Enum
import logging

logger = logging.getLogger(__name__)

RADIX = 100000.0


class Sex(str, Enum):
    """Sex codes used by the statutory tables."""
    MALE = "M"
    FEMALE = "F"


class Cohort(Enum):
    """Mortality cohorts."""
    GENERAL = "general"
    DISABLED = "disabled"


SexLike = Union[Sex, str]


def coerce_sex(sex: SexLike) -> Sex:
    """Accept Sex members or 'M'/'F'/'Male'/'Female' strings."""
    if isinstance(sex, Sex):
        return sex
    return Sex(sex.strip().upper()[0])


# =============================================================================
# CB-H-2020 - GENERAL LIVES, MALE
# Source: Superintendencia de Pensiones / CMF, TM-2020 tables
# =============================================================================

CB_H_2020 = (
    0.006154, 0.000331, 0.000200, 0.000163, 0.000139,         # 0-4
    0.000127, 0.000118, 0.000114, 0.000112, 0.000111,         # 5-9
    0.000116, 0.000130, 0.000155, 0.000195, 0.000255,         # 10-14
    0.000344, 0.000457, 0.000581, 0.000692, 0.000771,         # 15-19
    0.000822, 0.000855, 0.000882, 0.000906, 0.000923,         # 20-24
    0.000946, 0.000977, 0.001019, 0.001054, 0.001078,         # 25-29
    0.001100, 0.001134, 0.001181, 0.001227, 0.001261,         # 30-34
    0.001287, 0.001312, 0.001350, 0.001400, 0.001463,         # 35-39
    0.001528, 0.001599, 0.001671, 0.001750, 0.001817,         # 40-44
    0.001887, 0.001961, 0.002069, 0.002200, 0.002361,         # 45-49
    0.002532, 0.002700, 0.002849, 0.002986, 0.003412,         # 50-54
    0.003834, 0.004264, 0.004709, 0.005168, 0.005635,         # 55-59
    0.006097, 0.006550, 0.007003, 0.007490, 0.008083,         # 60-64
    0.008874, 0.009942, 0.011303, 0.012916, 0.014716,         # 65-69
    0.016636, 0.018630, 0.020684, 0.022820, 0.025095,         # 70-74
    0.027591, 0.030421, 0.033701, 0.037531, 0.041974,         # 75-79
    0.047053, 0.052766, 0.059097, 0.066038, 0.073594,         # 80-84
    0.081792, 0.090667, 0.100267, 0.110644, 0.121853,         # 85-89
    0.133946, 0.146940, 0.160891, 0.175894, 0.192038,         # 90-94
    0.209426, 0.227967, 0.247762, 0.268848, 0.291255,         # 95-99
    0.315002, 0.340099, 0.366537, 0.394293, 0.423326,         # 100-104
    0.453570, 0.483734, 0.514750, 0.546470, 0.578719,         # 105-109
    1.000000,                                                 # 110
)

# =============================================================================
# B-M-2020 - GENERAL LIVES, FEMALE
# =============================================================================

B_M_2020 = (
    0.005207, 0.000268, 0.000183, 0.000144, 0.000123,         # 0-4
    0.000111, 0.000102, 0.000096, 0.000092, 0.000090,         # 5-9
    0.000093, 0.000104, 0.000120, 0.000146, 0.000184,         # 10-14
    0.000223, 0.000251, 0.000268, 0.000283, 0.000291,         # 15-19
    0.000300, 0.000306, 0.000316, 0.000323, 0.000325,         # 20-24
    0.000319, 0.000319, 0.000329, 0.000350, 0.000371,         # 25-29
    0.000392, 0.000413, 0.000444, 0.000478, 0.000511,         # 30-34
    0.000547, 0.000591, 0.000647, 0.000701, 0.000752,         # 35-39
    0.000805, 0.000868, 0.000940, 0.001018, 0.001107,         # 40-44
    0.001206, 0.001315, 0.001420, 0.001528, 0.001649,         # 45-49
    0.001789, 0.001927, 0.002140, 0.002299, 0.002458,         # 50-54
    0.002644, 0.002859, 0.003090, 0.003327, 0.003581,         # 55-59
    0.003883, 0.004262, 0.004733, 0.005295, 0.005939,         # 60-64
    0.006647, 0.007397, 0.008187, 0.009031, 0.009941,         # 65-69
    0.010928, 0.012009, 0.013221, 0.014602, 0.016187,         # 70-74
    0.018012, 0.020121, 0.022564, 0.025386, 0.028615,         # 75-79
    0.032266, 0.036339, 0.040838, 0.045792, 0.051262,         # 80-84
    0.057336, 0.064119, 0.071721, 0.080243, 0.089768,         # 85-89
    0.100358, 0.112188, 0.125167, 0.139302, 0.154590,         # 90-94
    0.171021, 0.188599, 0.207367, 0.227259, 0.248101,         # 95-99
    0.269652, 0.291802, 0.314360, 0.337119, 0.359868,         # 100-104
    0.382398, 0.403098, 0.423059, 0.442133, 0.460204,         # 105-109
    1.000000,                                                 # 110
)

# =============================================================================
# I-H-2020 / I-M-2020 - DISABLED LIVES (ages 18-81)
# =============================================================================

I_H_2020 = (
    0.0125, 0.0132, 0.0140, 0.0148, 0.0157,                   # 18-22
    0.0166, 0.0176, 0.0187, 0.0199, 0.0212,                   # 23-27
    0.0226, 0.0241, 0.0257, 0.0274, 0.0293,                   # 28-32
    0.0313, 0.0335, 0.0359, 0.0385, 0.0413,                   # 33-37
    0.0443, 0.0475, 0.0510, 0.0548, 0.0589,                   # 38-42
    0.0633, 0.0681, 0.0733, 0.0789, 0.0850,                   # 43-47
    0.0915, 0.0986, 0.1063, 0.1146, 0.1236,                   # 48-52
    0.1333, 0.1438, 0.1551, 0.1673, 0.1805,                   # 53-57
    0.1947, 0.2100, 0.2264, 0.2441, 0.2631,                   # 58-62
    0.2835, 0.3054, 0.3289, 0.3540, 0.3810,                   # 63-67
    0.4098, 0.4407, 0.4737, 0.5090, 0.5467,                   # 68-72
    0.5868, 0.6296, 0.6751, 0.7234, 0.7747,                   # 73-77
    0.8290, 0.8865, 0.9472, 1.0000,                           # 78-81
)

I_M_2020 = (
    0.0095, 0.0101, 0.0108, 0.0115, 0.0123,                   # 18-22
    0.0131, 0.0140, 0.0149, 0.0159, 0.0170,                   # 23-27
    0.0182, 0.0195, 0.0209, 0.0224, 0.0240,                   # 28-32
    0.0257, 0.0276, 0.0296, 0.0318, 0.0342,                   # 33-37
    0.0368, 0.0396, 0.0426, 0.0459, 0.0494,                   # 38-42
    0.0533, 0.0574, 0.0619, 0.0668, 0.0720,                   # 43-47
    0.0777, 0.0838, 0.0904, 0.0975, 0.1052,                   # 48-52
    0.1135, 0.1224, 0.1320, 0.1424, 0.1536,                   # 53-57
    0.1656, 0.1786, 0.1925, 0.2075, 0.2236,                   # 58-62
    0.2409, 0.2595, 0.2794, 0.3008, 0.3237,                   # 63-67
    0.3483, 0.3746, 0.4028, 0.4329, 0.4651,                   # 68-72
    0.4994, 0.5360, 0.5750, 0.6164, 0.6604,                   # 73-77
    0.7071, 0.7566, 0.8090, 1.0000,                           # 78-81
)


class MortalityTable:
    """
    One read-only mortality table with its survivor column.

    The l(x) column is built once from the q(x) column and spans
    [min_age, max_age + 1]; l(max_age + 1) is zero because q(max_age) = 1.
    """

    def __init__(self, name: str, cohort: Cohort, sex: Sex,
                 min_age: int, rates: Sequence[float]):
        qx = np.array(rates, dtype=np.float64)
        if qx.size == 0 or qx[-1] != 1.0:
            raise ValueError(f"Table {name} must end with a terminal q = 1.0")
        if np.any((qx < 0.0) | (qx > 1.0)):
            raise ValueError(f"Table {name} has rates outside [0, 1]")

        # Sequential product from the radix keeps l(x) identical to the
        # year-by-year recursion l(x+1) = l(x) × (1 - q_x)
        lx = np.cumprod(np.concatenate(([RADIX], 1.0 - qx)))

        qx.setflags(write=False)
        lx.setflags(write=False)

        self.name = name
        self.cohort = cohort
        self.sex = sex
        self.min_age = min_age
        self.max_age = min_age + qx.size - 1
        self._qx = qx
        self._lx = lx

    def __repr__(self) -> str:
        return (f"MortalityTable({self.name}, ages {self.min_age}-{self.max_age})")

    def get_qx(self, age: int) -> float:
        """q(x) with the age clamped into the table's domain."""
        age_int = max(self.min_age, min(int(age), self.max_age))
        return float(self._qx[age_int - self.min_age])

    def get_qx_vector(self, ages: np.ndarray) -> np.ndarray:
        idx = np.clip(np.asarray(ages, dtype=np.int64), self.min_age, self.max_age) - self.min_age
        return self._qx[idx]

    def survival_count(self, age: int) -> float:
        """
        Synthetic cohort size l(x).

        Ages at or below the table minimum return the radix; ages past the
        terminal age return 0.
        """
        idx = max(0, min(int(age) - self.min_age, self._lx.size - 1))
        return float(self._lx[idx])

    def survival_counts(self, ages: np.ndarray) -> np.ndarray:
        idx = np.clip(np.asarray(ages, dtype=np.int64) - self.min_age, 0, self._lx.size - 1)
        return self._lx[idx]

    def survival_curve(self, age: int, years: int) -> np.ndarray:
        """
        tPx for t = 0..years, as l(x+t) / l(x).

        Returns all zeros when l(x) is already zero (age past the terminal age).
        """
        ages = np.arange(int(age), int(age) + years + 1)
        counts = self.survival_counts(ages)
        base = self.survival_count(age)
        if base <= 0.0:
            return np.zeros(years + 1)
        return counts / base

    def life_expectancy(self, age: int) -> float:
        """
        Curtate life expectancy, rounded half-up to one decimal.

        Formula: e(x) = Σ_{t=1}^{ω-x} ∏_{k=0}^{t-1} (1 - q_{x+k})
        """
        horizon = self.max_age - int(age)
        if horizon <= 0:
            return 0.0
        px = 1.0 - self.get_qx_vector(np.arange(int(age), self.max_age))
        expectancy = float(np.sum(np.cumprod(px)))
        return float(np.floor(expectancy * 10.0 + 0.5) / 10.0)


def _build_registry() -> Mapping[Tuple[Cohort, Sex], MortalityTable]:
    tables: Dict[Tuple[Cohort, Sex], MortalityTable] = {
        (Cohort.GENERAL, Sex.MALE): MortalityTable(
            "CB-H-2020", Cohort.GENERAL, Sex.MALE, 0, CB_H_2020),
        (Cohort.GENERAL, Sex.FEMALE): MortalityTable(
            "B-M-2020", Cohort.GENERAL, Sex.FEMALE, 0, B_M_2020),
        (Cohort.DISABLED, Sex.MALE): MortalityTable(
            "I-H-2020", Cohort.DISABLED, Sex.MALE, 18, I_H_2020),
        (Cohort.DISABLED, Sex.FEMALE): MortalityTable(
            "I-M-2020", Cohort.DISABLED, Sex.FEMALE, 18, I_M_2020),
    }
    return MappingProxyType(tables)


MORTALITY_TABLES = _build_registry()


class MortalityCalculator:
    """
    Mortality Calculator over the four statutory tables.

    Stateless apart from the shared read-only registry, so one instance can
    serve any number of concurrent calculations.

    Attributes:
        tables: Mapping (cohort, sex) -> MortalityTable
    """

    def __init__(self, tables: Mapping[Tuple[Cohort, Sex], MortalityTable] = MORTALITY_TABLES):
        self.tables = tables
        logger.debug(f"MortalityCalculator initialized: {', '.join(t.name for t in tables.values())}")

    def get_table(self, sex: SexLike, disabled: bool = False) -> MortalityTable:
        cohort = Cohort.DISABLED if disabled else Cohort.GENERAL
        return self.tables[(cohort, coerce_sex(sex))]

    def max_age(self, sex: SexLike, disabled: bool = False) -> int:
        return self.get_table(sex, disabled).max_age

    def get_qx(self, age: int, sex: SexLike, disabled: bool = False) -> float:
        """
        Annual probability of death q(x).

        Args:
            age: Attained integer age
            sex: 'M' or 'F'
            disabled: If True, use the disabled-lives table

        Returns:
            Probability of death within one year [0, 1]
        """
        return self.get_table(sex, disabled).get_qx(age)

    def get_px(self, age: int, sex: SexLike, disabled: bool = False) -> float:
        return 1.0 - self.get_qx(age, sex, disabled)

    def survival_count(self, age: int, sex: SexLike, disabled: bool = False) -> float:
        """
        Survivor count l(x) = 100,000 × ∏ (1 - q_a) from the table minimum age.
        """
        return self.get_table(sex, disabled).survival_count(age)

    def survival_curve(self, age: int, sex: SexLike, years: int,
                       disabled: bool = False) -> np.ndarray:
        return self.get_table(sex, disabled).survival_curve(age, years)

    def get_life_expectancy(self, age: int, sex: SexLike, disabled: bool = False) -> float:
        """
        Curtate life expectancy e(x) in years, one decimal.

        Args:
            age: Current age
            sex: 'M' or 'F'
            disabled: If True, use the disabled-lives table (horizon 81)

        Returns:
            Expected future lifetime in years
        """
        return self.get_table(sex, disabled).life_expectancy(age)


def create_mortality_calculator() -> MortalityCalculator:
    """Factory function returning a calculator bound to the statutory tables."""
    return MortalityCalculator(MORTALITY_TABLES)
