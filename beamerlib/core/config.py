#!/usr/bin/env python3

import os
import yaml
from fractions import Fraction
from beamerlib.core import utils
from beamerlib.core.errors import ConfigError

#============================================

DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_FPS = 25
DEFAULT_SLIDE_LENGTH = 100

DURATION_POLICIES = ('auto_fit', 'explicit')
IMAGE_FORMATS = ('png', 'jpg')

#============================================

def default_config() -> dict:
	"""
	Return the configuration used when no config file is given.
	"""
	fps = Fraction(DEFAULT_FPS, 1)
	return {
		'profile': {
			'fps': fps,
			'width': DEFAULT_WIDTH,
			'height': DEFAULT_HEIGHT,
			'colorspace': 709,
		},
		'timeline': {
			'default_slide_length': DEFAULT_SLIDE_LENGTH,
			'duration_policy': 'auto_fit',
		},
		'overlays': {
			'mute_audio': True,
			'opacity': 1.0,
		},
		'slides': {
			'directory': 'slides',
			'image_format': 'png',
		},
	}

#============================================

class ConfigLoader():
	def __init__(self, config_file: str = None, overrides: dict = None):
		self.config_file = config_file
		self.overrides = overrides or {}

	#============================
	def load(self) -> dict:
		data = {}
		if self.config_file is not None:
			data = self._load_yaml()
		self._validate_marker(data)
		config = default_config()
		config['profile'] = self._parse_profile(data.get('profile', {}))
		config['timeline'] = self._parse_timeline(data.get('timeline', {}))
		config['overlays'] = self._parse_overlays(data.get('overlays', {}))
		config['slides'] = self._parse_slides(data.get('slides', {}))
		self._apply_overrides(config)
		return config

	#============================
	def _load_yaml(self) -> dict:
		if not os.path.isfile(self.config_file):
			raise ConfigError(f"config file not found: {self.config_file}")
		with open(self.config_file, 'r') as data_file:
			try:
				data = yaml.safe_load(data_file)
			except yaml.YAMLError as exc:
				raise ConfigError(f"config file is not valid yaml: {exc}") from exc
		if data is None:
			return {}
		if not isinstance(data, dict):
			raise ConfigError("config must be a mapping at the top level")
		return data

	#============================
	def _validate_marker(self, data: dict) -> None:
		marker = data.get('beamer2mlt')
		if marker is not None and marker != 1:
			raise ConfigError("beamer2mlt must be set to 1 when present")
		known_keys = ('beamer2mlt', 'profile', 'timeline', 'overlays', 'slides')
		for key in data.keys():
			if key not in known_keys:
				raise ConfigError(f"unknown config key: {key}")

	#============================
	def _require_mapping(self, value, name: str) -> dict:
		if value is None:
			return {}
		if not isinstance(value, dict):
			raise ConfigError(f"{name} must be a mapping")
		return value

	#============================
	def _parse_profile(self, profile: dict) -> dict:
		profile = self._require_mapping(profile, 'profile')
		try:
			fps = utils.parse_fps(profile.get('fps', DEFAULT_FPS))
		except (ValueError, ZeroDivisionError, RuntimeError) as exc:
			raise ConfigError(f"profile.fps is invalid: {exc}") from exc
		if fps <= 0:
			raise ConfigError("profile.fps must be positive")
		resolution = profile.get('resolution', [DEFAULT_WIDTH, DEFAULT_HEIGHT])
		if not isinstance(resolution, (list, tuple)) or len(resolution) != 2:
			raise ConfigError("profile.resolution must be [width, height]")
		width = self._positive_int(resolution[0], 'profile.resolution width')
		height = self._positive_int(resolution[1], 'profile.resolution height')
		colorspace = self._positive_int(profile.get('colorspace', 709),
			'profile.colorspace')
		return {
			'fps': fps,
			'width': width,
			'height': height,
			'colorspace': colorspace,
		}

	#============================
	def _parse_timeline(self, timeline: dict) -> dict:
		timeline = self._require_mapping(timeline, 'timeline')
		default_length = self._positive_int(
			timeline.get('default_slide_length', DEFAULT_SLIDE_LENGTH),
			'timeline.default_slide_length')
		policy = timeline.get('duration_policy', 'auto_fit')
		self._check_policy(policy)
		return {
			'default_slide_length': default_length,
			'duration_policy': policy,
		}

	#============================
	def _parse_overlays(self, overlays: dict) -> dict:
		overlays = self._require_mapping(overlays, 'overlays')
		mute_audio = overlays.get('mute_audio', True)
		if not isinstance(mute_audio, bool):
			raise ConfigError("overlays.mute_audio must be true or false")
		opacity = overlays.get('opacity', 1.0)
		if isinstance(opacity, bool) or not isinstance(opacity, (int, float)):
			raise ConfigError("overlays.opacity must be a number")
		if opacity < 0 or opacity > 1:
			raise ConfigError("overlays.opacity must be between 0 and 1")
		return {
			'mute_audio': mute_audio,
			'opacity': float(opacity),
		}

	#============================
	def _parse_slides(self, slides: dict) -> dict:
		slides = self._require_mapping(slides, 'slides')
		directory = slides.get('directory', 'slides')
		if not isinstance(directory, str) or directory.strip() == "":
			raise ConfigError("slides.directory must be a non-empty string")
		image_format = str(slides.get('image_format', 'png')).lower()
		if image_format == 'jpeg':
			image_format = 'jpg'
		if image_format not in IMAGE_FORMATS:
			raise ConfigError("slides.image_format must be png or jpg")
		return {
			'directory': directory,
			'image_format': image_format,
		}

	#============================
	def _apply_overrides(self, config: dict) -> None:
		fps = self.overrides.get('fps')
		if fps is not None:
			config['profile'] = self._parse_profile({
				'fps': fps,
				'resolution': [config['profile']['width'], config['profile']['height']],
				'colorspace': config['profile']['colorspace'],
			})
		default_length = self.overrides.get('default_slide_length')
		if default_length is not None:
			config['timeline']['default_slide_length'] = self._positive_int(
				default_length, '--default-length')
		policy = self.overrides.get('duration_policy')
		if policy is not None:
			self._check_policy(policy)
			config['timeline']['duration_policy'] = policy
		mute_audio = self.overrides.get('mute_audio')
		if mute_audio is not None:
			config['overlays']['mute_audio'] = bool(mute_audio)

	#============================
	def _check_policy(self, policy) -> None:
		if policy not in DURATION_POLICIES:
			raise ConfigError(
				f"duration_policy must be one of {', '.join(DURATION_POLICIES)}"
			)

	#============================
	def _positive_int(self, value, name: str) -> int:
		if isinstance(value, bool):
			raise ConfigError(f"{name} must be a positive integer")
		try:
			number = int(value)
		except (TypeError, ValueError) as exc:
			raise ConfigError(f"{name} must be a positive integer") from exc
		if isinstance(value, float) and number != value:
			raise ConfigError(f"{name} must be a whole number")
		if number <= 0:
			raise ConfigError(f"{name} must be a positive integer")
		return number
