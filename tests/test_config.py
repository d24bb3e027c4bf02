import unittest

from rotrix.config import GameConfig
from rotrix.exceptions import ConfigError


class TestGameConfig(unittest.TestCase):

    def test_defaults_are_valid(self):
        config = GameConfig()
        self.assertIs(config.validate(), config)
        self.assertEqual((config.width, config.height), (10, 20))

    def test_invalid_configs(self):
        for kwargs in (
            {'width': 0},
            {'height': -1},
            {'max_level': 0},
            {'line_points': {}},
            {'min_spawns_before_flip': 0},
            {'min_spawns_before_flip': 9, 'max_spawns_before_flip': 8},
            {'initial_speed': 10, 'speed_min': 50},
            {'speed_multiplier': 1.5},
            {'points_multiplier': 0.5},
        ):
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ConfigError):
                    GameConfig(**kwargs).validate()

    def test_line_score(self):
        config = GameConfig()
        self.assertEqual(config.line_score(0), 0)
        self.assertEqual(config.line_score(1), 200)
        self.assertEqual(config.line_score(2), 1000)
        self.assertEqual(config.line_score(3), 2500)
        self.assertEqual(config.line_score(4), 5000)
        self.assertEqual(config.line_score(5), 1000)

    def test_level_threshold(self):
        config = GameConfig()
        self.assertEqual(config.level_threshold(1), 1000)
        self.assertAlmostEqual(config.level_threshold(3), 2250)

    def test_drop_interval(self):
        config = GameConfig()
        self.assertEqual(config.drop_interval(1), 450)
        self.assertAlmostEqual(config.drop_interval(2), 382.5)
        self.assertEqual(config.drop_interval(15), 50)
        self.assertEqual(config.drop_interval(99), config.drop_interval(15))
        self.assertEqual(config.drop_interval(0), 450)
        intervals = [config.drop_interval(level) for level in range(1, 16)]
        self.assertEqual(intervals, sorted(intervals, reverse=True))


if __name__ == '__main__':
    unittest.main()
