#!/usr/bin/env python3

import os
from fractions import Fraction

#============================================

QUIET_MODE = False

#============================================

def set_quiet_mode(value: bool) -> None:
	global QUIET_MODE
	QUIET_MODE = bool(value)

#============================================

def is_quiet_mode() -> bool:
	return QUIET_MODE

#============================================

def parse_fps(raw_fps) -> Fraction:
	if raw_fps is None:
		raise RuntimeError("profile.fps is required")
	if isinstance(raw_fps, bool):
		raise RuntimeError("profile.fps must be int, float, or fraction string")
	if isinstance(raw_fps, int):
		return Fraction(raw_fps, 1)
	if isinstance(raw_fps, float):
		return Fraction(str(raw_fps))
	if isinstance(raw_fps, str):
		if '/' in raw_fps:
			parts = raw_fps.split('/')
			return Fraction(int(parts[0]), int(parts[1]))
		return Fraction(raw_fps)
	raise RuntimeError("profile.fps must be int, float, or fraction string")

#============================================

def round_half_up_fraction(value: Fraction) -> int:
	numerator = value.numerator
	denominator = value.denominator
	whole = numerator // denominator
	remainder = numerator - (whole * denominator)
	if remainder * 2 >= denominator:
		return whole + 1
	return whole

#============================================

def frames_from_seconds(seconds, fps: Fraction) -> int:
	seconds_fraction = Fraction(str(seconds))
	frame_fraction = seconds_fraction * fps
	return round_half_up_fraction(frame_fraction)

#============================================

def reduce_fraction(num: int, den: int) -> tuple:
	if den == 0:
		return (num, den)
	a = num
	b = den
	while b != 0:
		a, b = b, a % b
	gcd = a if a != 0 else 1
	return (num // gcd, den // gcd)

#============================================

def format_number(value) -> str:
	"""
	Format a number without trailing zeros, for MLT property values.
	"""
	text = f"{float(value):.6f}"
	if '.' in text:
		text = text.rstrip('0').rstrip('.')
	if text in ("", "-0"):
		text = "0"
	return text

#============================================

def ensure_directory(dirpath: str) -> str:
	if not os.path.isdir(dirpath):
		os.makedirs(dirpath)
	return dirpath
