"""H264 profile-level-id parsing, formatting and SDP answer negotiation."""

from __future__ import annotations

import string
from dataclasses import dataclass
from enum import IntEnum


class Profile(IntEnum):
    """H264 profiles."""

    CONSTRAINED_BASELINE = 1
    BASELINE = 2
    MAIN = 3
    CONSTRAINED_HIGH = 4
    HIGH = 5


class Level(IntEnum):
    """H264 levels: ten times the level number, except level 1b."""

    L1_B = 0
    L1 = 10
    L1_1 = 11
    L1_2 = 12
    L1_3 = 13
    L2 = 20
    L2_1 = 21
    L2_2 = 22
    L3 = 30
    L3_1 = 31
    L3_2 = 32
    L4 = 40
    L4_1 = 41
    L4_2 = 42
    L5 = 50
    L5_1 = 51
    L5_2 = 52


# For level_idc=11 and profile_idc=0x42, 0x4D or 0x58, the constraint set3
# flag tells level 1b apart from level 1.1.
CONSTRAINT_SET3_FLAG = 0x10

_LEVEL_1B_STRINGS = {
    Profile.CONSTRAINED_BASELINE: "42f00b",
    Profile.BASELINE: "42100b",
    Profile.MAIN: "4d100b",
}

_PROFILE_IDC_IOP_STRINGS = {
    Profile.CONSTRAINED_BASELINE: "42e0",
    Profile.BASELINE: "4200",
    Profile.MAIN: "4d00",
    Profile.CONSTRAINED_HIGH: "640c",
    Profile.HIGH: "6400",
}


@dataclass(frozen=True)
class ProfileLevelId:
    """A parsed H264 profile and level pair."""

    profile: int
    level: int

    def __str__(self) -> str:
        """Canonical form as three hex bytes, or an empty string if invalid."""
        if self.level == Level.L1_B:
            return _LEVEL_1B_STRINGS.get(self.profile, "")
        prefix = _PROFILE_IDC_IOP_STRINGS.get(self.profile)
        if prefix is None:
            return ""
        return f"{prefix}{self.level:02x}"


# The spec default would be Baseline level 1; ConstrainedBaseline 3.1 is kept
# for compatibility with endpoints that send no parameters.
DEFAULT_PROFILE_LEVEL_ID = ProfileLevelId(Profile.CONSTRAINED_BASELINE, Level.L3_1)


def byte_mask_string(c: str, text: str) -> int:
    """Return a byte with a bit set wherever ``text`` holds character ``c``.

    For example ``byte_mask_string("x", "x1xx0000")`` is ``0b10110000``.
    """
    length = len(text)
    mask = 0
    for position, char in enumerate(text):
        if char == c:
            mask |= 1 << (length - 1 - position)
    return mask & 0xFF


class BitPattern:
    """Matches bytes against patterns such as ``"x1xx0000"`` (x is either bit)."""

    __slots__ = ("mask", "masked_value")

    def __init__(self, pattern: str) -> None:
        self.mask = 0xFF - byte_mask_string("x", pattern)
        self.masked_value = byte_mask_string("1", pattern)

    def matches(self, value: int) -> bool:
        return self.masked_value == (value & self.mask)

    def __repr__(self) -> str:
        return f"BitPattern(mask={self.mask:#010b}, value={self.masked_value:#010b})"


@dataclass(frozen=True)
class _ProfilePattern:
    profile_idc: int
    profile_iop: BitPattern
    profile: Profile


_PROFILE_PATTERNS = (
    _ProfilePattern(0x42, BitPattern("x1xx0000"), Profile.CONSTRAINED_BASELINE),
    _ProfilePattern(0x4D, BitPattern("1xxx0000"), Profile.CONSTRAINED_BASELINE),
    _ProfilePattern(0x58, BitPattern("11xx0000"), Profile.CONSTRAINED_BASELINE),
    _ProfilePattern(0x42, BitPattern("x0xx0000"), Profile.BASELINE),
    _ProfilePattern(0x58, BitPattern("10xx0000"), Profile.BASELINE),
    _ProfilePattern(0x4D, BitPattern("0x0x0000"), Profile.MAIN),
    _ProfilePattern(0x64, BitPattern("00000000"), Profile.HIGH),
    _ProfilePattern(0x64, BitPattern("00001100"), Profile.CONSTRAINED_HIGH),
)

_PLAIN_LEVELS = frozenset(level for level in Level if level not in (Level.L1_B, Level.L1_1))


@dataclass
class RtpParameter:
    """H264 codec parameters relevant to profile negotiation."""

    packetization_mode: int = 0
    profile_level_id: str = ""
    level_asymmetry_allowed: int = 0


def parse_profile_level_id(text: str) -> ProfileLevelId | None:
    """Parse a profile-level-id given as three hex bytes, or return None."""
    if len(text) != 6 or not all(char in string.hexdigits for char in text):
        return None
    numeric = int(text, 16)
    if numeric == 0:
        return None

    level_idc = numeric & 0xFF
    profile_iop = (numeric >> 8) & 0xFF
    profile_idc = (numeric >> 16) & 0xFF

    if level_idc == Level.L1_1:
        level = Level.L1_B if profile_iop & CONSTRAINT_SET3_FLAG else Level.L1_1
    elif level_idc in _PLAIN_LEVELS:
        level = Level(level_idc)
    else:
        return None

    for pattern in _PROFILE_PATTERNS:
        if profile_idc == pattern.profile_idc and pattern.profile_iop.matches(profile_iop):
            return ProfileLevelId(pattern.profile, level)
    return None


def parse_sdp_profile_level_id(text: str) -> ProfileLevelId | None:
    """Like :func:`parse_profile_level_id`, but an empty string gives the default."""
    if not text:
        return DEFAULT_PROFILE_LEVEL_ID
    return parse_profile_level_id(text)


def is_same_profile(first: str, second: str) -> bool:
    """Whether two profile-level-id strings denote the same H264 profile."""
    parsed_first = parse_sdp_profile_level_id(first)
    parsed_second = parse_sdp_profile_level_id(second)
    return (
        parsed_first is not None
        and parsed_second is not None
        and parsed_first.profile == parsed_second.profile
    )


def _is_less_level(a: int, b: int) -> bool:
    if a == Level.L1_B:
        return b not in (Level.L1, Level.L1_B)
    if b == Level.L1_B:
        return a != Level.L1
    return a < b


def _min_level(a: int, b: int) -> int:
    return a if _is_less_level(a, b) else b


def generate_profile_level_id_for_answer(
    local_params: RtpParameter, remote_params: RtpParameter
) -> str | None:
    """Compute the profile-level-id for an SDP answer.

    Returns None when neither side has a profile-level-id. Raises ValueError
    when either value is invalid or the profiles differ.
    """
    if not local_params.profile_level_id and not remote_params.profile_level_id:
        return None

    local = parse_sdp_profile_level_id(local_params.profile_level_id)
    remote = parse_sdp_profile_level_id(remote_params.profile_level_id)

    if local is None:
        raise ValueError("invalid local_profile_level_id")
    if remote is None:
        raise ValueError("invalid remote_profile_level_id")
    if local.profile != remote.profile:
        raise ValueError("H264 Profile mismatch")

    asymmetry_allowed = (
        local_params.level_asymmetry_allowed > 0 and remote_params.level_asymmetry_allowed > 0
    )
    # Without level asymmetry the answer may not upgrade the offered level.
    if asymmetry_allowed:
        answer_level = local.level
    else:
        answer_level = _min_level(local.level, remote.level)

    return str(ProfileLevelId(local.profile, answer_level))