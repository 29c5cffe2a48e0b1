"""Constructor synthesis for Defew: directive resolution, planning and emission."""
