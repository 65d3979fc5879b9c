"""Centralised selectors for Google Maps search and detail pages."""

# ==== SEARCH (results feed) ====
PLACE_PATH_FRAGMENT = "/maps/place/"
SEARCH_BOX = "#searchboxinput"
FEED = 'div[role="feed"]'
PLACE_LINK = f'a[href*="{PLACE_PATH_FRAGMENT}"]'

# ==== DETAIL (single business page) ====
MAIN = 'div[role="main"]'
HEADING = "h1"
RATING = f'{MAIN} span[aria-label*="stars"]'
REVIEWS = f'{MAIN} button[aria-label*="reviews"]'
DETAIL_FIELDS = (
    f"{MAIN} button, "
    f"{MAIN} a, "
    f"{MAIN} div[data-item-id]"
)
OUTBOUND_LINKS = 'a[href^="http"]'

# Structural identifiers carried in the data-item-id attribute.
ITEM_ID_ATTR = "data-item-id"
ITEM_ID_ADDRESS = "address"
ITEM_ID_PHONE_PREFIX = "phone"
ITEM_ID_WEBSITE = "authority"

# Selectors listed here are constant fragments rather than full CSS queries.
NON_SELECTOR_CONSTANTS = {
    "PLACE_PATH_FRAGMENT",
    "ITEM_ID_ATTR",
    "ITEM_ID_ADDRESS",
    "ITEM_ID_PHONE_PREFIX",
    "ITEM_ID_WEBSITE",
}
