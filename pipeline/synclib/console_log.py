from datetime import datetime

import rich.console


RICH_CONSOLE = rich.console.Console()


#============================================
def pick_style(message: str) -> str:
	"""
	Choose a console style from keywords in one progress line.
	"""
	lower = message.lower()
	if ("failed" in lower) or ("error" in lower):
		return "bold red"
	if ("skipping" in lower) or ("cancelled" in lower) or lower.startswith("no "):
		return "yellow"
	if ("saved" in lower) or ("created" in lower) or ("successful" in lower):
		return "green"
	return "cyan"


#============================================
def make_log_step(script_name: str):
	"""
	Build a log_step function that prints timestamped progress lines.
	"""
	def log_step(message: str) -> None:
		now_text = datetime.now().strftime("%H:%M:%S")
		line = f"[{script_name} {now_text}] {message}"
		RICH_CONSOLE.print(line, style=pick_style(message), markup=False, highlight=False)
	return log_step
