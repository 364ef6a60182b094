#!/usr/bin/env python3

import argparse
import sys
import yaml
from framekeylib.core import config
from framekeylib.core import utils
from framekeylib.core.project import FramekeyProject
from framekeylib.tracking import sampler as sampler_module
from framekeylib.tracking.stabilizer import TrackerError

#============================================

def parse_args():
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Compile crop, speed and color keyframes into video filter expressions")
	parser.add_argument('-y', '--yaml', dest='yamlfile',
		help='project yaml file describing the source and edits')
	parser.add_argument('-c', '--config', dest='config_file',
		help='settings yaml file (defaults are used when missing)')
	parser.add_argument('-t', '--track', dest='observations_file',
		help='recorded detector observations yaml; runs the crop tracker')
	parser.add_argument('-g', '--max-gap', dest='max_gap', type=float, default=0.1,
		help='largest time gap in seconds when matching recorded observations')
	parser.add_argument('-p', '--dump-plan', dest='dump_plan', action='store_true',
		help='print compiled expressions as yaml')
	parser.add_argument('-s', '--preview-samples', dest='preview_samples', type=int, default=0,
		help='with --dump-plan, evaluate crop and speed map curves at this many times')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='suppress progress output')
	parser.add_argument('--write-default-config', dest='default_config_path',
		help='write the default settings file to this path and exit')
	parser.set_defaults(dump_plan=False)
	parser.set_defaults(quiet=False)
	args = parser.parse_args()
	if args.default_config_path is None and args.yamlfile is None:
		parser.error("-y/--yaml is required")
	return args

#============================================

def main():
	args = parse_args()
	if args.default_config_path is not None:
		config.write_config_file(args.default_config_path, config.default_config())
		print(f"wrote {args.default_config_path}")
		return
	utils.set_quiet_mode(args.quiet)
	project = FramekeyProject(args.yamlfile, config_file=args.config_file)
	if args.observations_file is not None:
		observations = sampler_module.load_observations(args.observations_file)
		recorded = sampler_module.RecordedSampler(observations, max_gap=args.max_gap)
		try:
			project.track(recorded)
		except TrackerError as error:
			print(f"ERROR: {error}", file=sys.stderr)
			sys.exit(1)
	if args.dump_plan:
		print(yaml.safe_dump(project.dump_plan(preview_samples=args.preview_samples), sort_keys=False))
		return
	print(project.filter_text())


if __name__ == '__main__':
	main()
