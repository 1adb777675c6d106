# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
16-bit floating point conversions.

FP16 (IEEE 754 half precision) and BF16 (bfloat16) arrive on the wire as
raw 16-bit patterns. The conversions below work on those patterns directly
with integer bit arithmetic over numpy arrays, widening to float32.

FP16 layout:
    bit 15      sign
    bits 10-14  exponent, bias 15
    bits 0-9    mantissa

BF16 is the upper half of a float32: sign, 8-bit exponent (bias 127),
7-bit mantissa. Widening needs no rebias.
"""

import numpy as np

# float32 exponent bias (127) minus half exponent bias (15)
_EXPONENT_REBIAS = 112

_F32_INFINITY = 0x7F800000
_F32_QUIET_NAN = 0x7FC00000
_F16_INFINITY = 0x7C00
_F16_QUIET_NAN = 0x7E00


def fp16_bits_to_float32(bits) -> np.ndarray:
    """
    Decode FP16 bit patterns into float32 values.

    Args:
        bits: Array-like of 16-bit patterns (any integer dtype)

    Returns:
        float32 array of the same length
    """
    bits = np.asarray(bits).astype(np.uint32) & 0xFFFF

    sign = (bits & 0x8000) << 16
    exponent = (bits >> 10) & 0x1F
    mantissa = bits & 0x3FF

    out = np.empty(bits.shape, dtype=np.uint32)

    normal = (exponent != 0) & (exponent != 0x1F)
    out[normal] = (
        sign[normal]
        | ((exponent[normal] + _EXPONENT_REBIAS) << 23)
        | (mantissa[normal] << 13)
    )

    zero = (exponent == 0) & (mantissa == 0)
    out[zero] = sign[zero]

    # Subnormals: shift the mantissa up until the implicit bit appears,
    # lowering the exponent once per shift.
    subnormal = (exponent == 0) & (mantissa != 0)
    if subnormal.any():
        m = mantissa[subnormal]
        e = np.full(m.shape, 1 + _EXPONENT_REBIAS, dtype=np.uint32)
        for _ in range(10):
            pending = (m & 0x400) == 0
            if not pending.any():
                break
            m = np.where(pending, m << 1, m)
            e = np.where(pending, e - 1, e)
        out[subnormal] = sign[subnormal] | (e << 23) | ((m & 0x3FF) << 13)

    special = exponent == 0x1F
    infinite = special & (mantissa == 0)
    out[infinite] = sign[infinite] | _F32_INFINITY
    nan = special & (mantissa != 0)
    out[nan] = sign[nan] | _F32_QUIET_NAN

    return out.view(np.float32)


def float32_to_fp16_bits(values) -> np.ndarray:
    """
    Encode values as FP16 bit patterns, rounding to nearest even.

    Magnitudes beyond the FP16 range become infinity, magnitudes below
    half the smallest subnormal become signed zero.

    Returns:
        uint16 array of bit patterns
    """
    f = np.ascontiguousarray(values, dtype=np.float32).view(np.uint32)

    sign = (f >> 16) & 0x8000
    exponent = ((f >> 23) & 0xFF).astype(np.int64)
    mantissa = f & 0x7FFFFF
    half_exponent = exponent - _EXPONENT_REBIAS

    out = np.zeros(f.shape, dtype=np.uint32)

    normal = (half_exponent > 0) & (half_exponent < 0x1F) & (exponent != 0xFF)
    if normal.any():
        half = (
            sign[normal]
            | (half_exponent[normal].astype(np.uint32) << 10)
            | (mantissa[normal] >> 13)
        )
        remainder = mantissa[normal] & 0x1FFF
        round_up = (remainder > 0x1000) | ((remainder == 0x1000) & ((half & 1) == 1))
        # A carry out of the mantissa bumps the exponent, possibly to infinity.
        out[normal] = half + round_up.astype(np.uint32)

    overflow = (half_exponent >= 0x1F) & (exponent != 0xFF)
    out[overflow] = sign[overflow] | _F16_INFINITY

    subnormal = (half_exponent <= 0) & (half_exponent >= -10)
    if subnormal.any():
        m = mantissa[subnormal] | 0x800000
        shift = (14 - half_exponent[subnormal]).astype(np.uint32)
        half = m >> shift
        remainder = m & ((np.uint32(1) << shift) - 1)
        halfway = np.uint32(1) << (shift - 1)
        round_up = (remainder > halfway) | ((remainder == halfway) & ((half & 1) == 1))
        out[subnormal] = sign[subnormal] | (half + round_up.astype(np.uint32))

    underflow = half_exponent < -10
    out[underflow] = sign[underflow]

    special = exponent == 0xFF
    infinite = special & (mantissa == 0)
    out[infinite] = sign[infinite] | _F16_INFINITY
    nan = special & (mantissa != 0)
    out[nan] = sign[nan] | _F16_QUIET_NAN

    return out.astype(np.uint16)


def bf16_bits_to_float32(bits) -> np.ndarray:
    """Decode BF16 bit patterns by placing them in the high half of a float32."""
    bits = np.asarray(bits).astype(np.uint32) & 0xFFFF
    return (bits << 16).view(np.float32)


def float32_to_bf16_bits(values) -> np.ndarray:
    """Encode values as BF16 bit patterns, rounding to nearest even."""
    f = np.ascontiguousarray(values, dtype=np.float32).view(np.uint32)

    upper = f >> 16
    rounding_bias = np.uint32(0x7FFF) + (upper & 1)
    out = (f + rounding_bias) >> 16

    nan = ((f & 0x7F800000) == 0x7F800000) & ((f & 0x7FFFFF) != 0)
    out[nan] = upper[nan] | 0x40

    return out.astype(np.uint16)
