"""Turn photos of study material into quizzes and reviewers."""
