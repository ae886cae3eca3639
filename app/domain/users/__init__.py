"""Users domain - profiles, experience answers and ratings"""
