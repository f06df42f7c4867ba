"""Offline walkthrough: one level, one pickup, one level change.

Run with: python examples/offline_walkthrough.py
"""

import logging

from worldsync import Engine, EngineSettings, InMemoryWorld, SessionSettings, Vec3

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

world = InMemoryWorld()
door = world.add_barrier("/A1/Door_Intro")
world.add_collectible("DJ1", Vec3(0, 0, 0), opens=door)
world.add_collectible("DZ1", Vec3(4000, 0, 0))
world.set_player_position(Vec3(3000, 0, 0))

engine = Engine(SessionSettings(offline_mode=True), EngineSettings(), world)
engine.start()

for _ in range(30):
    engine.tick()
print(f"Checked before walking: {sorted(engine.state.checked)}")

world.set_player_position(Vec3(50, 0, 0))
for _ in range(30):
    engine.tick()
print(f"Checked after walking: {sorted(engine.state.checked)}")
print(f"Door actions: {world.entity(door).invocations}")

engine.begin_transition()
world.clear()
world.add_collectible("MT1", Vec3(0, 0, 0))
for _ in range(60):
    engine.tick()
print(f"Tracked after level change: {sorted(engine.enforcer.tracked)}")

engine.dump()
for entry in engine.feed.visible + engine.feed.pending:
    print(f"[notify] {entry.text}")
