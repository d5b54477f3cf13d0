#!/usr/bin/env python3

"""
Tests for the page-to-timeline pipeline and the command line.
"""

# Standard Library
import os
import sys
import tempfile
import unittest
import xml.etree.ElementTree
from fractions import Fraction

# PIP3 modules
import PIL.Image
import pymupdf

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
import beamer2mlt
from beamerlib.core import utils
from beamerlib.core.config import default_config
from beamerlib.core.errors import FilesystemError
from beamerlib.core.errors import InputError
from beamerlib.core.errors import MediaError
from beamerlib.core.project import BeamerProject
from beamerlib.document.rasterizer import find_launch_links
from beamerlib.document.rasterizer import page_duration_seconds
from beamerlib.medialib import MediaProbe

#============================================

def write_pdf(path: str, durations: list) -> None:
	"""
	Write a 16:9 PDF with one page per duration; None leaves /Dur unset.
	"""
	doc = pymupdf.open()
	for duration in durations:
		page = doc.new_page(width=320, height=180)
		page.insert_text((20, 90), f"slide {page.number}")
		if duration is not None:
			doc.xref_set_key(page.xref, "Dur", str(duration))
	doc.save(path)
	doc.close()

#============================================

def fake_reader(path: str) -> dict:
	return {'track': [{'@type': 'General'}, {'@type': 'Video', 'Duration': '1.6'}]}

#============================================

class FakePage():
	def __init__(self, links: list):
		self.rect = pymupdf.Rect(0, 0, 400, 200)
		self.number = 0
		self.links = links

	#============================
	def get_links(self) -> list:
		return self.links

#============================================

class LaunchLinkTest(unittest.TestCase):
	#============================================
	def test_only_launch_links_are_kept(self) -> None:
		page = FakePage([
			{'kind': pymupdf.LINK_URI, 'from': pymupdf.Rect(0, 0, 10, 10), 'uri': "https://x"},
			{'kind': pymupdf.LINK_GOTO, 'from': pymupdf.Rect(0, 0, 10, 10), 'page': 1},
			{'kind': pymupdf.LINK_LAUNCH, 'from': pymupdf.Rect(40, 40, 160, 140),
				'file': "clip.mp4?autostart"},
		])
		links = find_launch_links(page)
		self.assertEqual(len(links), 1)
		self.assertEqual(links[0]['file'], "clip.mp4?autostart")
		(x, y, w, h) = links[0]['area']
		self.assertAlmostEqual(x, 0.1)
		self.assertAlmostEqual(y, 0.2)
		self.assertAlmostEqual(w, 0.3)
		self.assertAlmostEqual(h, 0.5)

#============================================

class BeamerProjectTest(unittest.TestCase):
	#============================================
	def setUp(self) -> None:
		utils.set_quiet_mode(True)

	#============================================
	def tearDown(self) -> None:
		utils.set_quiet_mode(False)

	#============================================
	def test_pages_become_slides(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			pdf_file = os.path.join(temp_dir, "talk.pdf")
			mlt_file = os.path.join(temp_dir, "out", "talk.mlt")
			write_pdf(pdf_file, [2, None, 1.5])
			project = BeamerProject(pdf_file, mlt_file)
			project.run()
			slides_dir = os.path.join(temp_dir, "out", "slides")
			self.assertEqual(sorted(os.listdir(slides_dir)),
				["slide0000.png", "slide0001.png", "slide0002.png"])
			root = xml.etree.ElementTree.parse(mlt_file).getroot()
		pool = project.pool
		self.assertEqual(len(pool), 1)
		durations = [entry['duration_frames'] for entry in pool.base_track.entries]
		self.assertEqual(durations, [50, 100, 38])
		self.assertEqual(pool.global_time, 188)
		self.assertEqual(len(root.findall('playlist')), 1)
		self.assertEqual(len(root.findall('./tractor/transition')), 0)

	#============================================
	def test_make_slide_with_overlays(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			pdf_file = os.path.join(temp_dir, "talk.pdf")
			clip = os.path.join(temp_dir, "clip.mp4")
			with open(clip, 'w') as handle:
				handle.write("x")
			probe = MediaProbe(Fraction(25), info_reader=fake_reader)
			project = BeamerProject(pdf_file, os.path.join(temp_dir, "talk.mlt"),
				probe=probe)
			page_info = {
				'index': 0,
				'image': os.path.join(temp_dir, "slides", "slide0000.png"),
				'duration_seconds': None,
				'links': [
					{'file': "clip.mp4?autofit", 'area': (0.1, 0.2, 0.3, 0.4)},
					{'file': "clip.mp4", 'area': (0.5, 0.5, 0.5, 0.5)},
				],
			}
			slide = project.make_slide(page_info)
		self.assertTrue(slide.is_auto())
		self.assertEqual(len(slide.overlays), 2)
		self.assertEqual(slide.overlays[0].media, clip)
		self.assertEqual(slide.overlays[0].natural_length, 40)
		self.assertTrue(slide.overlays[0].auto_fit)
		self.assertFalse(slide.overlays[1].auto_fit)
		self.assertAlmostEqual(slide.overlays[0].rect['x'], 192)
		self.assertAlmostEqual(slide.overlays[1].rect['h'], 540)

	#============================================
	def test_missing_overlay_names_page(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			pdf_file = os.path.join(temp_dir, "talk.pdf")
			probe = MediaProbe(Fraction(25), info_reader=fake_reader)
			project = BeamerProject(pdf_file, os.path.join(temp_dir, "talk.mlt"),
				probe=probe)
			page_info = {
				'index': 4,
				'image': "slide0004.png",
				'duration_seconds': 3.0,
				'links': [{'file': "missing.mp4", 'area': (0, 0, 1, 1)}],
			}
			with self.assertRaises(MediaError) as context:
				project.make_slide(page_info)
		self.assertIn("page 5", str(context.exception))

	#============================================
	def test_missing_input(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			project = BeamerProject(os.path.join(temp_dir, "nope.pdf"),
				os.path.join(temp_dir, "talk.mlt"))
			with self.assertRaises(InputError):
				project.run()
			self.assertFalse(os.path.exists(os.path.join(temp_dir, "talk.mlt")))

	#============================================
	def test_slides_dir_blocked(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			pdf_file = os.path.join(temp_dir, "talk.pdf")
			write_pdf(pdf_file, [1])
			# a plain file where the slides directory should go
			with open(os.path.join(temp_dir, "slides"), 'w') as handle:
				handle.write("x")
			project = BeamerProject(pdf_file, os.path.join(temp_dir, "talk.mlt"))
			with self.assertRaises(FilesystemError):
				project.run()

	#============================================
	def test_jpg_slides(self) -> None:
		config = default_config()
		config['slides']['image_format'] = 'jpg'
		with tempfile.TemporaryDirectory() as temp_dir:
			pdf_file = os.path.join(temp_dir, "talk.pdf")
			write_pdf(pdf_file, [1])
			project = BeamerProject(pdf_file, os.path.join(temp_dir, "talk.mlt"), config)
			project.build()
			self.assertTrue(os.path.isfile(os.path.join(temp_dir, "slides", "slide0000.jpg")))

	#============================================
	def test_locked_input(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			pdf_file = os.path.join(temp_dir, "talk.pdf")
			doc = pymupdf.open()
			doc.new_page(width=320, height=180)
			doc.save(pdf_file, encryption=pymupdf.PDF_ENCRYPT_AES_256,
				owner_pw="owner", user_pw="secret")
			doc.close()
			project = BeamerProject(pdf_file, os.path.join(temp_dir, "talk.mlt"))
			with self.assertRaises(InputError) as context:
				project.run()
			self.assertIn("locked", str(context.exception))
			self.assertFalse(os.path.exists(os.path.join(temp_dir, "slides")))

	#============================================
	def test_non_pdf_input(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			image_file = os.path.join(temp_dir, "talk.png")
			PIL.Image.new("RGB", (32, 18), (255, 255, 255)).save(image_file, "PNG")
			project = BeamerProject(image_file, os.path.join(temp_dir, "talk.mlt"))
			with self.assertRaises(InputError) as context:
				project.run()
			self.assertIn("not a pdf", str(context.exception))

	#============================================
	def test_fractional_page_duration(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			pdf_file = os.path.join(temp_dir, "talk.pdf")
			write_pdf(pdf_file, [0.4, 3])
			doc = pymupdf.open(pdf_file)
			seconds = [page_duration_seconds(doc, page) for page in doc]
			doc.close()
		self.assertAlmostEqual(seconds[0], 0.4)
		self.assertAlmostEqual(seconds[1], 3.0)

	#============================================
	def test_sub_frame_duration_keeps_one_frame(self) -> None:
		project = BeamerProject("talk.pdf", "talk.mlt")
		page_info = {
			'index': 0,
			'image': "slide0000.png",
			'duration_seconds': 0.01,
			'links': [],
		}
		slide = project.make_slide(page_info)
		self.assertFalse(slide.is_auto())
		self.assertEqual(slide.requested_duration, 1)

#============================================

class CommandLineTest(unittest.TestCase):
	#============================================
	def tearDown(self) -> None:
		utils.set_quiet_mode(False)

	#============================================
	def test_exit_status(self) -> None:
		with tempfile.TemporaryDirectory() as temp_dir:
			pdf_file = os.path.join(temp_dir, "talk.pdf")
			mlt_file = os.path.join(temp_dir, "talk.mlt")
			self.assertEqual(beamer2mlt.main(["-q", pdf_file, mlt_file]), 1)
			write_pdf(pdf_file, [None, 2])
			self.assertEqual(beamer2mlt.main(["-q", "-l", "60", pdf_file, mlt_file]), 0)
			root = xml.etree.ElementTree.parse(mlt_file).getroot()
		lengths = []
		for producer in root.findall('producer'):
			for prop in producer.findall('property'):
				if prop.get('name') == 'length':
					lengths.append(prop.text)
		self.assertEqual(lengths, ['60', '50'])

#============================================

def main() -> None:
	"""Run the unit tests."""
	unittest.main()

#============================================

if __name__ == "__main__":
	main()
