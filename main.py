"""
Pygame host shell for the chipax CHIP-8 emulator
"""

import jax
import pygame
import hydra
from omegaconf import DictConfig

from chipax import Chip8, Chip8Error, chip8_display_to_rgb, create_color_scheme
from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, TIMER_FREQUENCY, INSTRUCTIONS_PER_FRAME, NUM_KEYS
from chipax.logging import MachineLogger

#    Keypad                   Keyboard
#    +-+-+-+-+                +-+-+-+-+
#    |1|2|3|C|                |1|2|3|4|
#    +-+-+-+-+                +-+-+-+-+
#    |4|5|6|D|                |Q|W|E|R|
#    +-+-+-+-+       =>       +-+-+-+-+
#    |7|8|9|E|                |A|S|D|F|
#    +-+-+-+-+                +-+-+-+-+
#    |A|0|B|F|                |Z|X|C|V|
#    +-+-+-+-+                +-+-+-+-+
KEY_MAP = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,
}


def run_emulator(rom_filename, scale=10, color_scheme="classic", log_level="INFO", seed=0):
    """Main emulator loop: 60 frames per second, fixed cycles per frame."""
    logger = MachineLogger(log_level=log_level)
    machine = Chip8(rng=jax.random.PRNGKey(seed), logger=logger)

    try:
        machine.load_rom(rom_filename)
    except Chip8Error as e:
        logger.error(str(e))
        return 1

    on_color, off_color = create_color_scheme(color_scheme)

    pygame.init()
    screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
    pygame.display.set_caption("Chip8 - ESC to exit")
    clock = pygame.time.Clock()

    keypad = [False] * NUM_KEYS
    exit_code = 0
    running = True

    while running:
        clock.tick(TIMER_FREQUENCY)

        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    running = False
                elif event.key in KEY_MAP:
                    keypad[KEY_MAP[event.key]] = True
            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    keypad[KEY_MAP[event.key]] = False

        machine.set_keypad(keypad)

        try:
            if logger.is_enabled_for("DEBUG"):
                for _ in range(INSTRUCTIONS_PER_FRAME):
                    machine.cycle()
            else:
                machine.run(INSTRUCTIONS_PER_FRAME)
        except Chip8Error:
            exit_code = 1
            break

        machine.update_timers()

        frame = machine.draw()
        if frame is not None:
            rgb = chip8_display_to_rgb(frame, scale=scale, on_color=on_color, off_color=off_color)
            # surfarray expects (width, height, 3)
            surface = pygame.surfarray.make_surface(rgb.swapaxes(0, 1))
            screen.blit(surface, (0, 0))
            pygame.display.flip()

    pygame.quit()
    return exit_code


@hydra.main(version_base=None, config_path="conf", config_name="config")
def main(cfg: DictConfig) -> int:
    return run_emulator(
        hydra.utils.to_absolute_path(cfg.rom),
        scale=cfg.scale,
        color_scheme=cfg.color_scheme,
        log_level=cfg.log_level,
        seed=cfg.seed,
    )


if __name__ == "__main__":
    main()
