import asyncio
from fastapi import WebSocket, WebSocketDisconnect

_TOPICS = (
    "link_state",
    "link_error",
    "transcript",
    "detection",
    "notification",
)


async def events_ws(websocket: WebSocket, bus):
    await websocket.accept()

    # Subscribe to all topics and keep (topic, queue)
    subscriptions: list[tuple[str, asyncio.Queue]] = []
    for topic in _TOPICS:
        q = await bus.subscribe(topic, maxsize=50)
        subscriptions.append((topic, q))

    try:
        while True:
            # One task per topic queue
            task_to_topic = {
                asyncio.create_task(queue.get()): topic
                for topic, queue in subscriptions
            }

            # Wait until ANY topic produces an event
            done, pending = await asyncio.wait(
                task_to_topic.keys(),
                return_when=asyncio.FIRST_COMPLETED,
            )

            for task in pending:
                task.cancel()

            # Several queues can be ready at once; send them all
            for task in done:
                topic = task_to_topic[task]
                payload = task.result()
                await websocket.send_json({
                    "type": topic,
                    "payload": payload,
                    "ts": (
                        payload.get("timestamp") or payload.get("ts")
                        if isinstance(payload, dict)
                        else None
                    ),
                })

    except WebSocketDisconnect:
        pass

    finally:
        # Cleanly unsubscribe on disconnect
        for topic, queue in subscriptions:
            await bus.unsubscribe(topic, queue)
