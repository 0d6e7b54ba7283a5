from context_chat.cli import main

main()
