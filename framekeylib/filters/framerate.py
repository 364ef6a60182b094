#!/usr/bin/env python3

#============================================

FRAME_RATES = {
	'23.976': '24000/1001',
	'24': '24',
	'25': '25',
	'29.97': '30000/1001',
	'30': '30',
	'48': '48',
	'50': '50',
	'59.94': '60000/1001',
	'60': '60',
	'120': '120',
}

FRAME_RATE_MODES = ('keep', 'interpolate')

#============================================

def frame_rate_value(raw_rate) -> str:
	"""
	Map a frame rate like 29.97 or '60' to the engine's rate text.
	"""
	if isinstance(raw_rate, bool) or raw_rate is None:
		raise RuntimeError("frame_rate.target must be a frame rate")
	if isinstance(raw_rate, (int, float)):
		key = f"{float(raw_rate):.3f}".rstrip('0').rstrip('.')
	else:
		key = str(raw_rate).strip()
	if key in FRAME_RATES:
		return FRAME_RATES[key]
	if key in FRAME_RATES.values():
		return key
	raise RuntimeError(f"unsupported frame rate: {raw_rate}")

#============================================

def compile_frame_rate_filter(mode: str, target) -> str | None:
	if mode not in FRAME_RATE_MODES:
		raise RuntimeError(f"frame_rate.mode must be one of {', '.join(FRAME_RATE_MODES)}")
	if mode == 'keep':
		return None
	fps = frame_rate_value(target)
	return (f"minterpolate=fps={fps}:mi_mode=mci:mc_mode=obmc:me=epzs"
		":me_mode=bidir:vsbmc=1:scd=fdiff")
