"""PomoSync: a deadline-driven Pomodoro timer with companion sync."""
