#!/usr/bin/env python3

import os
from tqdm import tqdm
from beamerlib.core import utils
from beamerlib.core.config import default_config
from beamerlib.core.deck import AUTO_DURATION
from beamerlib.core.deck import Overlay
from beamerlib.core.deck import Slide
from beamerlib.core.deck import is_auto_fit_reference
from beamerlib.core.deck import resolve_media_reference
from beamerlib.core.deck import scale_rect
from beamerlib.core.errors import FilesystemError
from beamerlib.core.errors import MediaError
from beamerlib.core.timeline import TimelineBuilder
from beamerlib.document.rasterizer import SlideRasterizer
from beamerlib.exporters.mlt import MltExporter
from beamerlib.medialib import MediaProbe

#============================================

class BeamerProject():
	def __init__(self, document_file: str, output_file: str, config: dict = None,
		probe: MediaProbe = None):
		self.document_file = document_file
		self.output_file = output_file
		self.config = config if config is not None else default_config()
		self.profile = self.config['profile']
		self.probe = probe or MediaProbe(self.profile['fps'])
		self.slides_dir = self._slides_dir_path()
		self.pool = None
		self.transitions = []

	#============================
	def _slides_dir_path(self) -> str:
		output_dir = os.path.dirname(os.path.abspath(self.output_file))
		return os.path.join(output_dir, self.config['slides']['directory'])

	#============================
	def _make_slides_dir(self) -> None:
		try:
			utils.ensure_directory(self.slides_dir)
		except OSError as exc:
			raise FilesystemError(
				f"could not create directory '{self.slides_dir}': {exc.strerror}"
			) from exc

	#============================
	def build(self) -> tuple:
		"""
		Rasterize every page and assemble the track pool.

		Returns:
			tuple: (TrackPool, transitions) as given by TimelineBuilder.finalize().
		"""
		timeline_cfg = self.config['timeline']
		builder = TimelineBuilder(
			default_slide_length=timeline_cfg['default_slide_length'],
			duration_policy=timeline_cfg['duration_policy'],
		)
		rasterizer = SlideRasterizer(self.document_file, self.slides_dir,
			self.profile['width'], self.profile['height'],
			image_format=self.config['slides']['image_format'])
		with rasterizer:
			self._make_slides_dir()
			page_range = range(rasterizer.page_count)
			if not utils.is_quiet_mode():
				page_range = tqdm(page_range, desc="slides", unit="page")
			for page_number in page_range:
				page_info = rasterizer.render_page(page_number)
				slide = self.make_slide(page_info)
				builder.add_slide(slide)
		(self.pool, self.transitions) = builder.finalize()
		return (self.pool, self.transitions)

	#============================
	def make_slide(self, page_info: dict) -> Slide:
		requested = AUTO_DURATION
		seconds = page_info['duration_seconds']
		if seconds is not None and seconds > 0:
			# a positive duration shorter than half a frame still shows the slide
			requested = max(1, utils.frames_from_seconds(seconds, self.profile['fps']))
		overlays = []
		for link in page_info['links']:
			overlays.append(self.make_overlay(page_info['index'], link))
		return Slide(page_info['index'], page_info['image'], requested, overlays)

	#============================
	def make_overlay(self, page_index: int, link: dict) -> Overlay:
		try:
			media = resolve_media_reference(link['file'], self.document_file)
			natural_length = self.probe.probe(media)
			auto_fit = is_auto_fit_reference(link['file'])
		except MediaError as exc:
			raise MediaError(f"page {page_index + 1}: {exc}") from exc
		rect = scale_rect(link['area'], self.profile['width'], self.profile['height'],
			opacity=self.config['overlays']['opacity'])
		return Overlay(media, rect, natural_length, auto_fit=auto_fit)

	#============================
	def run(self) -> None:
		self.build()
		exporter = MltExporter(self.pool, self.transitions, self.profile,
			self.output_file, mute_audio=self.config['overlays']['mute_audio'])
		exporter.export()
		if not utils.is_quiet_mode():
			print(f"wrote {self.output_file}: {len(self.pool)} tracks, "
				f"{self.pool.global_time} frames")
