#python wrapper for mediainfo

import json
import os
import shlex
import subprocess
from fractions import Fraction
from beamerlib.core import utils
from beamerlib.core.errors import MediaError

#===============================
def getMediaInfo(mediafile):
	cmd = "mediainfo --Output=JSON %s"%(shlex.quote(mediafile))
	try:
		proc = subprocess.Popen(cmd, shell=True,
			stderr=subprocess.PIPE, stdout=subprocess.PIPE)
	except ValueError as exc:
		if "fds_to_keep" in str(exc):
			proc = subprocess.Popen(cmd, shell=True,
				stderr=subprocess.PIPE, stdout=subprocess.PIPE, close_fds=False)
		else:
			raise
	stdout, stderr = proc.communicate()
	if proc.returncode != 0:
		message = stderr.decode('utf-8', errors='replace').strip()
		raise MediaError(f"mediainfo failed for {mediafile}: {message}")
	try:
		rawdata = json.loads(stdout)
	except json.JSONDecodeError as exc:
		raise MediaError(f"mediainfo returned no data for {mediafile}") from exc
	data = rawdata.get('media') if isinstance(rawdata, dict) else None
	if data is None:
		raise MediaError(f"mediainfo could not read {mediafile}")
	return data

#===============================
def getVideoTrack(data):
	for track in data.get('track', []):
		if track.get('@type') == 'Video':
			return track
	return None

#===============================
def getFrameCount(data, fps: Fraction) -> int:
	"""
	Length of the media in frames at the canvas frame rate.
	"""
	videotrack = getVideoTrack(data)
	tracks = data.get('track') or [{}]
	general = tracks[0]
	for track in (videotrack, general):
		if track is None:
			continue
		duration = track.get('Duration')
		if duration is not None:
			return utils.frames_from_seconds(duration, fps)
	frame_count = videotrack.get('FrameCount') if videotrack else None
	frame_rate = videotrack.get('FrameRate') if videotrack else None
	if frame_count is not None and frame_rate is not None:
		seconds = Fraction(str(frame_count)) / Fraction(str(frame_rate))
		return utils.round_half_up_fraction(seconds * fps)
	return 0

#===============================
class MediaProbe():
	def __init__(self, fps: Fraction, info_reader=None):
		self.fps = fps
		self.info_reader = info_reader or getMediaInfo
		self.cache = {}

	#===============================
	def probe(self, mediafile: str) -> int:
		"""
		Validate a media file and return its natural length in frames.
		"""
		if mediafile in self.cache:
			return self.cache[mediafile]
		if not os.path.isfile(mediafile):
			raise MediaError(f"overlay media not found: {mediafile}")
		data = self.info_reader(mediafile)
		if getVideoTrack(data) is None:
			raise MediaError(f"overlay media has no video track: {mediafile}")
		length = getFrameCount(data, self.fps)
		self.cache[mediafile] = length
		return length
