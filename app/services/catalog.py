# app/services/catalog.py
"""Closed catalogs the randomizer spins over."""
from typing import Tuple

TOPICS: Tuple[str, ...] = (
    "My Biggest Failure",
    "A Person Who Inspires Me",
    "The Future of Work",
    "What Success Means to Me",
    "A Habit I Want to Change",
    "Social Media and Friendship",
    "My Ideal Weekend",
    "Learning From Mistakes",
    "The Role of Art in Society",
    "A Difficult Decision I Made",
    "Technology and Loneliness",
    "What I Would Tell My Younger Self",
    "Leadership Without a Title",
    "The Value of Boredom",
    "A Place That Changed Me",
    "Money and Happiness",
    "Working Under Pressure",
    "Why Curiosity Matters",
)

BOOKS: Tuple[str, ...] = (
    "To Kill a Mockingbird",
    "1984",
    "Pride and Prejudice",
    "The Great Gatsby",
    "The Alchemist",
    "Atomic Habits",
    "Sapiens",
    "The Little Prince",
    "Brave New World",
    "The Catcher in the Rye",
    "Thinking, Fast and Slow",
    "Man's Search for Meaning",
    "The Hobbit",
    "Animal Farm",
    "The Kite Runner",
    "Educated",
)

# Reading windows (seconds) offered before book questions
READING_WINDOWS: Tuple[int, ...] = (180, 300, 420, 600)
DEFAULT_READING_SECONDS = 300
