"""Resource operations (comments, likes, subscriptions, tweets, videos, playlists,
channels, users). Each takes the acting user's id explicitly."""
