#!/usr/bin/env python3

from beamerlib.core.config import DEFAULT_SLIDE_LENGTH
from beamerlib.core.errors import ValidationError
from beamerlib.core.tracks import BASE_TRACK
from beamerlib.core.tracks import TrackPool

#============================================

class TimelineBuilder():
	"""
	Assemble slides and their overlays into a pool of parallel tracks.

	Slides are fed one at a time with add_slide(). The k-th overlay on a
	slide goes to overlay track k. Each overlay track is padded with a blank
	up to the slide start and then filled with the overlay media, looped
	from frame 0, until it ends exactly where the slide ends.
	"""
	def __init__(self, default_slide_length: int = DEFAULT_SLIDE_LENGTH,
		duration_policy: str = 'auto_fit'):
		if default_slide_length <= 0:
			raise ValidationError("default slide length must be positive")
		if duration_policy not in ('auto_fit', 'explicit'):
			raise ValidationError(f"unknown duration policy: {duration_policy}")
		self.default_slide_length = default_slide_length
		self.duration_policy = duration_policy
		self.pool = TrackPool()
		self.finalized = False

	#============================
	@property
	def global_time(self) -> int:
		return self.pool.global_time

	#============================
	def resolve_slide_duration(self, slide) -> int:
		overlays = slide.overlays
		max_length = 0
		if len(overlays) > 0:
			max_length = max(overlay.natural_length for overlay in overlays)
		if slide.is_auto():
			if len(overlays) == 0:
				return self.default_slide_length
			return max(max_length, self.default_slide_length)
		if self.duration_policy == 'auto_fit':
			if any(overlay.auto_fit for overlay in overlays):
				return max_length
		return slide.requested_duration

	#============================
	def add_slide(self, slide) -> int:
		"""
		Commit one slide and its overlays, returning the slide duration.
		"""
		if self.finalized:
			raise RuntimeError("timeline is already finalized")
		self._validate_overlays(slide)
		slide_duration = self.resolve_slide_duration(slide)
		if slide_duration <= 0:
			raise ValidationError(
				f"page {slide.index + 1}: slide duration must be positive"
			)
		for track_index, overlay in enumerate(slide.overlays, start=1):
			self.place_overlay(track_index, overlay, slide_duration)
		self.commit_slide(slide, slide_duration)
		return slide_duration

	#============================
	def _validate_overlays(self, slide) -> None:
		# a zero length overlay would never fill the slide
		for overlay in slide.overlays:
			if overlay.natural_length is None or overlay.natural_length <= 0:
				raise ValidationError(
					f"page {slide.index + 1}: overlay {overlay.media} has no frames"
				)

	#============================
	def place_overlay(self, track_index: int, overlay, slide_duration: int) -> list:
		if track_index <= BASE_TRACK:
			raise ValidationError("overlays cannot be placed on the slide track")
		if overlay.natural_length <= 0:
			raise ValidationError(f"overlay {overlay.media} has no frames")
		track = self.pool.acquire_track(track_index)
		start_time = self.pool.global_time
		end_time = start_time + slide_duration
		if track.cursor > start_time:
			raise ValidationError(
				f"track {track_index} runs past the slide start ({track.cursor} > {start_time})"
			)
		if track.cursor < start_time:
			track.append_blank(start_time - track.cursor)
		chunks = []
		while track.cursor < end_time:
			remaining = end_time - track.cursor
			chunk_length = min(remaining, overlay.natural_length)
			entry = track.append_clip(overlay.media, 0, chunk_length,
				kind='video', rect=overlay.rect)
			chunks.append(entry)
		return chunks

	#============================
	def commit_slide(self, slide, slide_duration: int) -> dict:
		base_track = self.pool.base_track
		entry = base_track.append_clip(slide.image, 0, slide_duration, kind='image')
		self.pool.advance(slide_duration)
		return entry

	#============================
	def finalize(self) -> tuple:
		"""
		Freeze the pool and list the blend transitions the exporter must plant.

		Returns:
			tuple: (TrackPool, list of (a_track, b_track) pairs).
		"""
		self.pool.freeze()
		self.finalized = True
		transitions = []
		for track in self.pool.overlay_tracks:
			transitions.append((BASE_TRACK, track.index))
		return (self.pool, transitions)
