"""ESP32 motion/security dashboard core."""
