#!/usr/bin/env python3

import argparse
import sys
import yaml
from beamerlib.core import utils
from beamerlib.core.config import ConfigLoader
from beamerlib.core.config import DURATION_POLICIES
from beamerlib.core.errors import BeamerError
from beamerlib.core.project import BeamerProject

#============================================

def parse_args(argv: list = None):
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Convert a beamer PDF with embedded videos to an MLT timeline")
	parser.add_argument('input_file', help='input PDF document')
	parser.add_argument('output_file', help='output MLT XML file')
	parser.add_argument('-c', '--config', dest='config_file',
		help='yaml file with profile and timeline settings')
	parser.add_argument('-r', '--fps', dest='fps',
		help='frame rate, e.g. 25 or 30000/1001')
	parser.add_argument('-l', '--default-length', dest='default_slide_length', type=int,
		help='frames for slides without a duration or overlays')
	parser.add_argument('-d', '--duration-policy', dest='duration_policy',
		choices=DURATION_POLICIES,
		help='whether auto-fit overlays may override an explicit slide duration')
	parser.add_argument('-a', '--keep-audio', dest='mute_audio', action='store_false',
		help='keep the audio of overlay videos')
	parser.add_argument('-p', '--dump-plan', dest='dump_plan', action='store_true',
		help='print the assembled tracks as yaml instead of writing MLT')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='suppress progress output')
	parser.set_defaults(mute_audio=None)
	args = parser.parse_args(argv)
	return args

#============================================

def main(argv: list = None) -> int:
	args = parse_args(argv)
	utils.set_quiet_mode(args.quiet)
	overrides = {
		'fps': args.fps,
		'default_slide_length': args.default_slide_length,
		'duration_policy': args.duration_policy,
		'mute_audio': args.mute_audio,
	}
	try:
		config = ConfigLoader(args.config_file, overrides=overrides).load()
		project = BeamerProject(args.input_file, args.output_file, config)
		if args.dump_plan:
			(pool, transitions) = project.build()
			plan = pool.to_plan()
			plan['transitions'] = [list(pair) for pair in transitions]
			print(yaml.safe_dump(plan, sort_keys=False))
			return 0
		project.run()
	except BeamerError as exc:
		print(f"error: {exc}", file=sys.stderr)
		return 1
	return 0


if __name__ == '__main__':
	sys.exit(main())
