import asyncio

from pgmq_client import AsyncPGMQueue


async def main():
    queue = AsyncPGMQueue(
        host="localhost",
        port="5432",
        username="postgres",
        password="postgres",
        database="postgres",
        verbose=True,
        log_filename="pgmq_async.log",
    )
    await queue.init()

    test_queue = "example_queue_async"
    if test_queue in [record.queue_name for record in await queue.list_queues()]:
        await queue.drop_queue(test_queue)
    await queue.create_queue(test_queue)

    async def consume():
        # Blocks server-side until a message shows up or 5 seconds pass
        messages = await queue.read_messages_with_poll(test_queue, vt=30, count=1, max_poll_seconds=5)
        print(f"Consumer got: {[message.json() for message in messages]}")
        if messages:
            await queue.delete_messages(test_queue, messages)

    async def produce():
        await asyncio.sleep(1)
        msg_id = await queue.send_message(test_queue, {"content": "hello"})
        print(f"Producer sent message {msg_id}")

    await asyncio.gather(consume(), produce())

    print(f"Metrics: {await queue.get_metrics(test_queue)}")
    await queue.drop_queue(test_queue)
    await queue.close()


if __name__ == "__main__":
    asyncio.run(main())
