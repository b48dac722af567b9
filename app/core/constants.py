"""Application constants.

Table, bucket and RPC names used against the Supabase project.
"""

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------
POSTS_TABLE: str = "posts"
COMMENTS_TABLE: str = "comments"
LIKES_TABLE: str = "likes"
FOLLOWS_TABLE: str = "follows"
PROFILES_TABLE: str = "profiles"

# ---------------------------------------------------------------------------
# Storage buckets
# ---------------------------------------------------------------------------
POST_IMAGES_BUCKET: str = "post-images"
AVATARS_BUCKET: str = "avatars"

# ---------------------------------------------------------------------------
# RPC
# ---------------------------------------------------------------------------
# increment_counter(p_table text, p_id text, p_field text, p_delta int)
# returns the clamped new value; only used when ATOMIC_COUNTERS is on.
INCREMENT_COUNTER_RPC: str = "increment_counter"

# Columns a counter RPC/update is allowed to touch, per table.
COUNTER_FIELDS: dict[str, frozenset[str]] = {
    POSTS_TABLE: frozenset({"like_count"}),
    COMMENTS_TABLE: frozenset({"like_count"}),
    PROFILES_TABLE: frozenset({"followers_count", "following_count"}),
}

# Profile columns exposed as author attribution on posts and comments.
AUTHOR_COLUMNS: str = "id, username, full_name, avatar_url"

# Characters with meaning inside a PostgREST ``or`` filter expression.
SEARCH_RESERVED_CHARS: str = ",()"

# LIKE metacharacters escaped with a backslash in search patterns.
LIKE_WILDCARDS: str = "\\%_"
