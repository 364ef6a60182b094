#!/usr/bin/env python3

"""
Pytest coverage for the recorded observation sampler.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from framekeylib.core import utils
from framekeylib.model.geometry import ClipWindow
from framekeylib.model.geometry import NormalizedRect
from framekeylib.model.geometry import centered_rect
from framekeylib.tracking import stabilizer
from framekeylib.tracking.sampler import RecordedSampler
from framekeylib.tracking.sampler import load_observations
from framekeylib.tracking.stabilizer import TrackedObservation

#============================================

@pytest.fixture(autouse=True)
def quiet_output():
	utils.set_quiet_mode(True)
	yield
	utils.set_quiet_mode(False)

#============================================

def _detection(time_value: float, mid_x: float, confidence: float) -> TrackedObservation:
	return TrackedObservation(time_value, centered_rect(mid_x, 0.5, 0.06, 0.06), confidence)

#============================================

def _two_objects(times: list) -> list:
	observations = []
	for time_value in times:
		observations.append(_detection(time_value, 0.2, 0.9))
		observations.append(_detection(time_value, 0.8, 0.6))
	return observations

#============================================

def test_nearest_time_and_gap() -> None:
	sampler = RecordedSampler([_detection(0.0, 0.5, 0.9), _detection(1.0, 0.6, 0.9)],
		max_gap=0.1)
	assert sampler(0.05).time == 0.0
	assert sampler(0.96).time == 1.0
	assert sampler(0.5) is None
	assert RecordedSampler([])(0.0) is None

#============================================

def test_without_anchor_most_confident_wins() -> None:
	sampler = RecordedSampler(_two_objects([0.0, 0.5]))
	assert sampler(0.0).bounding_box.mid_x == pytest.approx(0.2)

#============================================

def test_anchor_selects_nearest_detection() -> None:
	sampler = RecordedSampler(_two_objects([0.0, 0.5, 1.0]))
	sampler.update_anchor(_detection(0.0, 0.75, 1.0))
	picked = sampler(0.5)
	assert picked.bounding_box.mid_x == pytest.approx(0.8)
	sampler.update_anchor(picked)
	assert sampler(1.0).bounding_box.mid_x == pytest.approx(0.8)
	# a lost observation does not move the anchor
	sampler.update_anchor(TrackedObservation(1.0, None, 0.0))
	assert sampler.anchor is picked

#============================================

def test_group_without_boxes_reports_lost() -> None:
	sampler = RecordedSampler([TrackedObservation(0.0, None, 0.0)])
	assert sampler(0.0).bounding_box is None

#============================================

def test_tracker_follows_anchored_object() -> None:
	times = [step * 0.05 for step in range(41)]
	sampler = RecordedSampler(_two_objects(times))
	initial_rect = NormalizedRect(0.65, 0.4, 0.2, 0.2)
	sampler.update_anchor(TrackedObservation(0.0, initial_rect, 1.0))
	keyframes = stabilizer.stabilize_track(initial_rect, ClipWindow(0.0, 2.0), sampler,
		30.0, (1000, 1000), on_accept=sampler.update_anchor)
	assert keyframes[-1].rect.mid_x > 0.75
	assert sampler.anchor.bounding_box.mid_x == pytest.approx(0.8)

#============================================

def test_load_observations(tmp_path) -> None:
	path = tmp_path / "observations.yaml"
	path.write_text(yaml.safe_dump({'observations': [
		{'time': 0.0, 'box': [0.1, 0.2, 0.2, 0.2], 'confidence': 0.8},
		{'time': "0:01", 'box': [0.1, 0.2, 0.2, 0.2], 'origin': 'bottom_left'},
		{'time': 2.0},
	]}), encoding="utf-8")
	observations = load_observations(str(path))
	assert observations[0].bounding_box.as_tuple() == pytest.approx((0.1, 0.2, 0.2, 0.2))
	assert observations[1].time == pytest.approx(1.0)
	assert observations[1].confidence == 1.0
	assert observations[1].bounding_box.y == pytest.approx(0.6)
	assert observations[2].bounding_box is None

#============================================

def test_bad_observation_raises(tmp_path) -> None:
	path = tmp_path / "observations.yaml"
	path.write_text(yaml.safe_dump({'observations': [{'time': 0.0, 'box': [0.1, 0.2]}]}),
		encoding="utf-8")
	with pytest.raises(RuntimeError):
		load_observations(str(path))
