#!/usr/bin/env python3

from beamerlib.core.errors import ValidationError

#============================================

BASE_TRACK = 0

#============================================

class Track():
	def __init__(self, index: int):
		self.index = index
		self.entries = []
		# total frames committed so far
		self.cursor = 0
		self.frozen = False

	#============================
	def append_blank(self, duration_frames: int) -> dict:
		self._check_duration(duration_frames)
		entry = {
			'type': 'blank',
			'duration_frames': duration_frames,
		}
		return self._append(entry)

	#============================
	def append_clip(self, resource: str, in_frame: int, out_frame: int,
		kind: str = 'video', rect: dict = None) -> dict:
		duration_frames = out_frame - in_frame
		self._check_duration(duration_frames)
		entry = {
			'type': 'clip',
			'kind': kind,
			'resource': resource,
			'in_frame': in_frame,
			'out_frame': out_frame,
			'duration_frames': duration_frames,
		}
		if rect is not None:
			entry['rect'] = dict(rect)
		return self._append(entry)

	#============================
	def _append(self, entry: dict) -> dict:
		if self.frozen:
			raise RuntimeError(f"track {self.index} is finalized")
		self.entries.append(entry)
		self.cursor += entry['duration_frames']
		return entry

	#============================
	def _check_duration(self, duration_frames: int) -> None:
		if duration_frames <= 0:
			raise ValidationError(
				f"track {self.index} entry duration must be positive, got {duration_frames}"
			)

	#============================
	def clips(self) -> list:
		return [entry for entry in self.entries if entry['type'] == 'clip']

	#============================
	def __len__(self) -> int:
		return len(self.entries)

#============================================

class TrackPool():
	"""
	Growable list of tracks addressed by index.

	Track 0 holds the slides, tracks 1..N hold overlays. Tracks are only
	ever appended, so track k is always the k-th track created.
	"""
	def __init__(self):
		self.tracks = [Track(BASE_TRACK)]
		# frames committed to the slide track, start of the next slide
		self.global_time = 0
		self.frozen = False

	#============================
	def ensure_length(self, count: int) -> None:
		if self.frozen:
			raise RuntimeError("track pool is finalized")
		while len(self.tracks) < count:
			self.tracks.append(Track(len(self.tracks)))

	#============================
	def acquire_track(self, index: int) -> Track:
		if index < 0:
			raise ValidationError(f"track index must not be negative: {index}")
		self.ensure_length(index + 1)
		return self.tracks[index]

	#============================
	@property
	def base_track(self) -> Track:
		return self.tracks[BASE_TRACK]

	#============================
	@property
	def overlay_tracks(self) -> list:
		return self.tracks[BASE_TRACK + 1:]

	#============================
	def advance(self, duration_frames: int) -> None:
		if duration_frames <= 0:
			raise ValidationError("global time can only move forward")
		self.global_time += duration_frames

	#============================
	def freeze(self) -> None:
		self.frozen = True
		for track in self.tracks:
			track.frozen = True

	#============================
	def to_plan(self) -> dict:
		"""
		Plain data view of the pool, suitable for yaml.safe_dump.
		"""
		tracks = []
		for track in self.tracks:
			tracks.append({
				'index': track.index,
				'role': 'slides' if track.index == BASE_TRACK else 'overlay',
				'cursor': track.cursor,
				'entries': [dict(entry) for entry in track.entries],
			})
		return {
			'global_time': self.global_time,
			'tracks': tracks,
		}

	#============================
	def __len__(self) -> int:
		return len(self.tracks)

	#============================
	def __iter__(self):
		return iter(self.tracks)
