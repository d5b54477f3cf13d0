#!/usr/bin/env python3

import os
import pymupdf
from PIL import Image
from beamerlib.core.errors import FilesystemError
from beamerlib.core.errors import InputError

#============================================

POINTS_PER_INCH = 72.0
PIL_FORMATS = {'png': 'PNG', 'jpg': 'JPEG'}

#============================================

def page_duration_seconds(doc, page):
	"""
	Read the /Dur entry of a page (beamer \\transduration), in seconds.

	Returns None when the page asks for no specific duration.
	"""
	(value_type, value) = doc.xref_get_key(page.xref, "Dur")
	if value_type not in ('int', 'float', 'real'):
		return None
	seconds = float(value)
	if seconds <= 0:
		return None
	return seconds

#============================================

def find_launch_links(page) -> list:
	"""
	Collect launch links of a page with their page-normalized areas.

	Only launch links carry embedded media; every other kind is skipped.
	"""
	page_rect = page.rect
	if page_rect.width <= 0 or page_rect.height <= 0:
		raise InputError(f"page {page.number + 1} has zero size")
	links = []
	for link in page.get_links():
		if link.get('kind') != pymupdf.LINK_LAUNCH:
			continue
		reference = link.get('file')
		if not reference:
			continue
		area = pymupdf.Rect(link['from']).normalize()
		links.append({
			'file': reference,
			'area': (
				(area.x0 - page_rect.x0) / page_rect.width,
				(area.y0 - page_rect.y0) / page_rect.height,
				area.width / page_rect.width,
				area.height / page_rect.height,
			),
		})
	return links

#============================================

class SlideRasterizer():
	def __init__(self, document_path: str, slides_dir: str, width: int, height: int,
		image_format: str = 'png'):
		self.document_path = document_path
		self.slides_dir = slides_dir
		self.width = width
		self.height = height
		self.image_format = image_format
		self.doc = None

	#============================
	def open(self) -> None:
		if not os.path.isfile(self.document_path):
			raise InputError(f"could not load input file {self.document_path}")
		try:
			doc = pymupdf.open(self.document_path)
		except (RuntimeError, ValueError) as exc:
			raise InputError(f"could not load input file {self.document_path}: {exc}") from exc
		if not doc.is_pdf:
			doc.close()
			raise InputError(f"input file is not a pdf: {self.document_path}")
		if doc.needs_pass or doc.is_encrypted:
			doc.close()
			raise InputError(f"input file is locked: {self.document_path}")
		self.doc = doc

	#============================
	def close(self) -> None:
		if self.doc is not None:
			self.doc.close()
			self.doc = None

	#============================
	def __enter__(self):
		self.open()
		return self

	#============================
	def __exit__(self, exc_type, exc_value, traceback) -> None:
		self.close()

	#============================
	@property
	def page_count(self) -> int:
		return self.doc.page_count

	#============================
	def image_path(self, page_number: int) -> str:
		filename = f"slide{page_number:04d}.{self.image_format}"
		return os.path.abspath(os.path.join(self.slides_dir, filename))

	#============================
	def render_page(self, page_number: int) -> dict:
		"""
		Render one page to the slides directory and read its link annotations.

		Returns:
			dict: index, image, duration_seconds, links.
		"""
		try:
			page = self.doc.load_page(page_number)
		except (RuntimeError, ValueError, IndexError) as exc:
			raise InputError(f"could not load page {page_number + 1}") from exc
		links = find_launch_links(page)
		image_file = self.image_path(page_number)
		self._save_image(page, image_file)
		return {
			'index': page_number,
			'image': image_file,
			'duration_seconds': page_duration_seconds(self.doc, page),
			'links': links,
		}

	#============================
	def _render_scale(self, page) -> float:
		page_width_in = page.rect.width / POINTS_PER_INCH
		page_height_in = page.rect.height / POINTS_PER_INCH
		dpi = min(self.width / page_width_in, self.height / page_height_in)
		return dpi / POINTS_PER_INCH

	#============================
	def _save_image(self, page, image_file: str) -> None:
		zoom = self._render_scale(page)
		matrix = pymupdf.Matrix(zoom, zoom)
		pix = page.get_pixmap(matrix=matrix, alpha=False, colorspace=pymupdf.csRGB)
		image = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
		try:
			image.save(image_file, PIL_FORMATS[self.image_format])
		except OSError as exc:
			raise FilesystemError(f"could not write slide image {image_file}: {exc}") from exc
