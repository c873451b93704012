# Number of decimal places used by assertAlmostEqual throughout the test suite
AIYAGARI_PRECISION = 6
