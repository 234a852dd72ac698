import os
import subprocess


#============================================
def get_repo_root() -> str:
	"""
	Return the git top-level directory, or this file's directory outside git.
	"""
	here = os.path.dirname(os.path.abspath(__file__))
	try:
		result = subprocess.run(
			["git", "rev-parse", "--show-toplevel"],
			cwd=here,
			capture_output=True,
			text=True,
			check=True,
		)
	except (OSError, subprocess.CalledProcessError):
		return here
	top_level = result.stdout.strip()
	if not top_level:
		return here
	return top_level
