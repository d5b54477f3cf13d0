import os
import lxml.etree
from beamerlib.core import utils
from beamerlib.core.errors import FilesystemError
from beamerlib.core.errors import ValidationError

#============================================

BLEND_SERVICE = 'qtblend'
CLIP_TYPE_VIDEO = '2'

#============================================

def format_rect(rect: dict) -> str:
	"""
	Format a placement rectangle as an MLT keyframe string at frame 0.
	"""
	values = [rect['x'], rect['y'], rect['w'], rect['h'], rect.get('opacity', 1.0)]
	return "0=" + " ".join(utils.format_number(value) for value in values)

#============================================
class MltExporter():
	def __init__(self, pool, transitions: list, profile: dict, output_file: str,
		mute_audio: bool = True):
		self.pool = pool
		self.transitions = transitions
		self.profile = profile
		self.output_file = output_file
		self.mute_audio = mute_audio
		self.producer_counter = 0
		self.root = None
		self.producer_ids = {}
		self.playlist_ids = []

	#============================
	def export(self) -> None:
		self.to_element()
		self._write_output()

	#============================
	def to_element(self):
		self.root = lxml.etree.Element('mlt')
		self.root.set('LC_NUMERIC', 'C')
		self.root.set('producer', 'tractor0')
		self.producer_counter = 0
		self.producer_ids = {}
		self.playlist_ids = []
		self._emit_profile()
		# producers must precede the playlists that reference them
		for track in self.pool:
			for entry in track.entries:
				if entry['type'] == 'clip':
					self._emit_producer(entry)
		for track in self.pool:
			self._emit_playlist(track)
		self._emit_tractor()
		return self.root

	#============================
	def _emit_profile(self) -> None:
		fps = self.profile['fps']
		width = self.profile['width']
		height = self.profile['height']
		(display_num, display_den) = utils.reduce_fraction(width, height)
		profile = lxml.etree.SubElement(self.root, 'profile')
		profile.set('description', f"{width}x{height} {utils.format_number(fps)} fps")
		profile.set('width', str(width))
		profile.set('height', str(height))
		profile.set('progressive', '1')
		profile.set('sample_aspect_num', '1')
		profile.set('sample_aspect_den', '1')
		profile.set('display_aspect_num', str(display_num))
		profile.set('display_aspect_den', str(display_den))
		profile.set('frame_rate_num', str(fps.numerator))
		profile.set('frame_rate_den', str(fps.denominator))
		profile.set('colorspace', str(self.profile.get('colorspace', 709)))

	#============================
	def _emit_producer(self, entry: dict) -> str:
		if entry['kind'] == 'image':
			return self._emit_image_producer(entry)
		if entry['kind'] == 'video':
			return self._emit_video_chain(entry)
		raise ValidationError(f"unsupported clip kind: {entry['kind']}")

	#============================
	def _emit_image_producer(self, entry: dict) -> str:
		key = ('image', entry['resource'])
		if key in self.producer_ids:
			return self.producer_ids[key]
		producer_id = self._next_producer_id('slide')
		producer = lxml.etree.SubElement(self.root, 'producer')
		producer.set('id', producer_id)
		producer.set('in', '0')
		producer.set('out', str(entry['duration_frames'] - 1))
		self._set_property(producer, 'length', str(entry['duration_frames']))
		self._set_property(producer, 'resource', entry['resource'])
		self._set_property(producer, 'mlt_service', 'qimage')
		self._set_property(producer, 'kdenlive:clip_type', CLIP_TYPE_VIDEO)
		self.producer_ids[key] = producer_id
		return producer_id

	#============================
	def _emit_video_chain(self, entry: dict) -> str:
		key = ('video', entry['resource'])
		if key in self.producer_ids:
			return self.producer_ids[key]
		producer_id = self._next_producer_id('chain')
		chain = lxml.etree.SubElement(self.root, 'chain')
		chain.set('id', producer_id)
		self._set_property(chain, 'resource', entry['resource'])
		self._set_property(chain, 'mlt_service', 'avformat')
		self._set_property(chain, 'kdenlive:clip_type', CLIP_TYPE_VIDEO)
		if self.mute_audio:
			# test_audio=1 replaces the audio with silence
			self._set_property(chain, 'set.test_audio', '1')
			self._set_property(chain, 'set.test_image', '0')
		self.producer_ids[key] = producer_id
		return producer_id

	#============================
	def _emit_playlist(self, track) -> None:
		playlist_id = f"playlist{track.index}"
		playlist_elem = lxml.etree.SubElement(self.root, 'playlist')
		playlist_elem.set('id', playlist_id)
		self._set_property(playlist_elem, 'hide', '2')
		for entry in track.entries:
			self._emit_playlist_entry(playlist_elem, entry)
		self.playlist_ids.append(playlist_id)

	#============================
	def _emit_playlist_entry(self, playlist_elem, entry: dict) -> None:
		entry_type = entry['type']
		if entry_type == 'clip':
			producer_id = self.producer_ids[(entry['kind'], entry['resource'])]
			playlist_entry = lxml.etree.SubElement(playlist_elem, 'entry')
			playlist_entry.set('producer', producer_id)
			playlist_entry.set('in', str(entry['in_frame']))
			playlist_entry.set('out', str(entry['out_frame'] - 1))
			if entry.get('rect') is not None:
				self._emit_blend_filter(playlist_entry, entry['rect'])
			return
		if entry_type == 'blank':
			self._emit_blank_entry(playlist_elem, entry['duration_frames'])
			return
		raise ValidationError(f"unsupported playlist entry type: {entry_type}")

	#============================
	def _emit_blank_entry(self, playlist_elem, duration_frames: int) -> None:
		if duration_frames <= 0:
			raise ValidationError("blank duration must be positive")
		blank_elem = lxml.etree.SubElement(playlist_elem, 'blank')
		blank_elem.set('length', str(duration_frames))

	#============================
	def _emit_blend_filter(self, playlist_entry, rect: dict) -> None:
		filter_elem = lxml.etree.SubElement(playlist_entry, 'filter')
		self._set_property(filter_elem, 'mlt_service', BLEND_SERVICE)
		self._set_property(filter_elem, 'kdenlive_id', BLEND_SERVICE)
		self._set_property(filter_elem, 'rect', format_rect(rect))

	#============================
	def _emit_tractor(self) -> None:
		tractor = lxml.etree.SubElement(self.root, 'tractor')
		tractor.set('id', 'tractor0')
		self._set_property(tractor, 'hide', '2')
		multitrack = lxml.etree.SubElement(tractor, 'multitrack')
		for playlist_id in self.playlist_ids:
			track_elem = lxml.etree.SubElement(multitrack, 'track')
			track_elem.set('producer', playlist_id)
		for index, (a_track, b_track) in enumerate(self.transitions, start=1):
			transition = lxml.etree.SubElement(tractor, 'transition')
			transition.set('id', f"transition{index}")
			self._set_property(transition, 'a_track', str(a_track))
			self._set_property(transition, 'b_track', str(b_track))
			self._set_property(transition, 'mlt_service', BLEND_SERVICE)
			self._set_property(transition, 'internal_added', '327')

	#============================
	def _set_property(self, parent, name: str, value: str) -> None:
		prop = lxml.etree.SubElement(parent, 'property')
		prop.set('name', name)
		prop.text = value

	#============================
	def _next_producer_id(self, prefix: str) -> str:
		self.producer_counter += 1
		return f"{prefix}_{self.producer_counter:04d}"

	#============================
	def _write_output(self) -> None:
		output_dir = os.path.dirname(os.path.abspath(self.output_file))
		temp_file = self.output_file + ".part"
		try:
			os.makedirs(output_dir, exist_ok=True)
			tree = lxml.etree.ElementTree(self.root)
			tree.write(temp_file, encoding='utf-8', xml_declaration=True,
				pretty_print=True)
			os.replace(temp_file, self.output_file)
		except OSError as exc:
			if os.path.exists(temp_file):
				os.remove(temp_file)
			raise FilesystemError(f"could not write output {self.output_file}: {exc}") from exc
