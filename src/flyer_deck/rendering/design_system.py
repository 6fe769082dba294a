"""Deck design tokens and shared stylesheet."""

PRIMARY = "#1A202C"
SECONDARY = "#C5A059"
BACKGROUND = "#FDFCFB"
TEXT = "#2D3748"
MUTED = "#718096"
DANGER = "#C53030"

SLIDE_WIDTH = 1280
SLIDE_HEIGHT = 720

FONT_STACK = "'Noto Sans JP', 'Hiragino Kaku Gothic ProN', 'Yu Gothic', sans-serif"

STYLESHEET = f"""
* {{ box-sizing: border-box; margin: 0; padding: 0; }}
body {{ background: {BACKGROUND}; color: {TEXT}; font-family: {FONT_STACK}; }}
.slide {{ position: relative; width: {SLIDE_WIDTH}px; height: {SLIDE_HEIGHT}px;
  padding: 48px 64px; background: {BACKGROUND}; overflow: hidden; }}
.slide__title {{ font-size: 32px; color: {PRIMARY}; border-left: 6px solid {SECONDARY};
  padding-left: 16px; margin-bottom: 28px; }}
.slide__body {{ display: flex; gap: 32px; height: calc(100% - 90px); }}
.card {{ flex: 1; background: #fff; border-top: 3px solid {SECONDARY}; padding: 20px;
  box-shadow: 0 1px 3px rgba(0, 0, 0, 0.08); }}
.card h3 {{ color: {PRIMARY}; font-size: 20px; margin-bottom: 8px; }}
.value {{ color: {SECONDARY}; font-weight: 700; font-size: 24px; }}
.muted {{ color: {MUTED}; font-size: 14px; }}
table {{ width: 100%; border-collapse: collapse; font-size: 15px; }}
th, td {{ border-bottom: 1px solid #E2E8F0; padding: 8px; text-align: left; }}
th {{ color: {PRIMARY}; background: #F7F5F0; }}
img {{ max-width: 100%; max-height: 100%; object-fit: contain; }}
.marker {{ display: inline-block; width: 22px; height: 22px; border-radius: 50%;
  color: #fff; text-align: center; font-size: 13px; line-height: 22px; margin-right: 6px; }}
.error-banner {{ background: {DANGER}; color: #fff; padding: 16px 20px; font-weight: 700; }}
.error-reason {{ margin-top: 16px; color: {MUTED}; white-space: pre-wrap; }}
.skeleton {{ flex: 1; background: linear-gradient(90deg, #EDF2F7, #F7FAFC, #EDF2F7); }}
"""
