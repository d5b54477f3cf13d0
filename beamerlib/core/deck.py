#!/usr/bin/env python3

import os
import urllib.parse
from beamerlib.core.errors import MediaError
from beamerlib.core.errors import ValidationError

#============================================

# requested_duration value meaning "derive the length from the overlays"
AUTO_DURATION = None

#============================================

class Overlay():
	def __init__(self, media: str, rect: dict, natural_length: int,
		auto_fit: bool = False):
		self.media = media
		self.rect = rect
		self.natural_length = natural_length
		self.auto_fit = auto_fit

	#============================
	def __repr__(self) -> str:
		return (f"Overlay(media={self.media!r}, natural_length={self.natural_length}, "
			f"auto_fit={self.auto_fit})")

#============================================

class Slide():
	def __init__(self, index: int, image: str, requested_duration: int = AUTO_DURATION,
		overlays: list = None):
		self.index = index
		self.image = image
		self.requested_duration = requested_duration
		self.overlays = list(overlays) if overlays is not None else []

	#============================
	def is_auto(self) -> bool:
		if self.requested_duration is AUTO_DURATION:
			return True
		return self.requested_duration <= 0

	#============================
	def __repr__(self) -> str:
		return (f"Slide(index={self.index}, requested_duration={self.requested_duration}, "
			f"overlays={len(self.overlays)})")

#============================================

def scale_rect(area: tuple, width: int, height: int, opacity: float = 1.0) -> dict:
	"""
	Scale a page-normalized (x, y, w, h) area onto the canvas.

	Args:
		area: Rectangle in [0, 1] page units, origin top-left.
		width: Canvas width in pixels.
		height: Canvas height in pixels.
		opacity: Opacity stored alongside the rectangle.

	Returns:
		dict: Placement rectangle with keys x, y, w, h, opacity.
	"""
	if len(area) != 4:
		raise ValidationError("overlay area must have four values")
	(x, y, w, h) = [float(value) for value in area]
	# normalize a flipped rectangle the way link areas can arrive
	if w < 0:
		x += w
		w = -w
	if h < 0:
		y += h
		h = -h
	return {
		'x': x * width,
		'y': y * height,
		'w': w * width,
		'h': h * height,
		'opacity': float(opacity),
	}

#============================================

def split_media_reference(reference: str) -> tuple:
	"""
	Split a link target into its path part and its query string.
	"""
	if reference is None or reference.strip() == "":
		raise MediaError("overlay link has an empty media reference")
	parts = urllib.parse.urlsplit(reference.strip())
	scheme = parts.scheme.lower()
	# single letter schemes are windows drive letters
	if len(scheme) == 1:
		return (reference.split('?', 1)[0], parts.query)
	if scheme in ('', 'file', 'run'):
		path = urllib.parse.unquote(parts.path)
		if scheme == 'file' and parts.netloc not in ('', 'localhost'):
			raise MediaError(f"remote file reference not supported: {reference}")
		return (path, parts.query)
	raise MediaError(f"unsupported media reference scheme: {reference}")

#============================================

def resolve_media_reference(reference: str, document_path: str) -> str:
	"""
	Resolve an overlay reference to an absolute path, query string removed.

	Relative references resolve against the directory of the document.
	"""
	(path, _query) = split_media_reference(reference)
	if path == "":
		raise MediaError(f"overlay link has no file path: {reference}")
	if not os.path.isabs(path):
		document_dir = os.path.dirname(os.path.abspath(document_path))
		path = os.path.join(document_dir, path)
	return os.path.abspath(path)

#============================================

def is_auto_fit_reference(reference: str) -> bool:
	"""
	True when the link query asks for the slide to fit the media length.

	Accepts `video.mp4?autofit` and `video.mp4?fit=auto`.
	"""
	(_path, query) = split_media_reference(reference)
	if query == "":
		return False
	params = urllib.parse.parse_qs(query, keep_blank_values=True)
	if 'autofit' in params:
		return True
	return 'auto' in params.get('fit', [])
