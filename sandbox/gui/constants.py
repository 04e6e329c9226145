CARD_W = 90
CARD_H = 128

# Canvas and UI colors
CANVAS_BG = "#2b2b2b"
PLAYFIELD_BG = "#24452f"
HAND_BG = "#1f1f1f"
ZONE_OUTLINE = "#4a4a4a"
FALLBACK_CARD_BG = "#6b6b6b"
FALLBACK_CARD_TEXT = "#222"
DECK_BG = "#3b3b6b"
LABEL_TEXT = "#eaeaea"
WARNING_TEXT = "#ffd166"

# Layout
PADDING = 12
HAND_PADDING = 12
HAND_GAP = 8
HAND_H = CARD_H + 2 * HAND_PADDING

# Roughly one redraw per display frame
FRAME_MS = 16

# Canvas tags
CARD_TAG = "card"
DECK_TAG = "deck"
HAND_TAG = "hand"
PLAYFIELD_TAG = "playfield"
STATUS_TAG = "status"
PREVIEW_TAG = "preview"

# Enlarged card shown while the preview key is held
PREVIEW_CARD_W = 3 * CARD_W
PREVIEW_CARD_H = 3 * CARD_H
PREVIEW_OFFSET = 20
PREVIEW_BG = "#f4f1e8"
